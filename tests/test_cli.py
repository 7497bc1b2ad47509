"""Tests für die Kommandozeile (click CliRunner)."""

from pathlib import Path

from click.testing import CliRunner

from main import cli


def _invoke(config: Path, *args: str):
    return CliRunner().invoke(cli, ["--config", str(config), *args], obj={})


def _prepare(tmp_path: Path) -> tuple[Path, Path]:
    """Konfiguration anlegen und Demo-Datensatz erzeugen."""
    config = tmp_path / "grading_config.yaml"
    data = tmp_path / "practice_data.json"
    assert _invoke(config, "setup").exit_code == 0
    result = _invoke(config, "generate", "--seed", "42", "--json-path", str(data))
    assert result.exit_code == 0, result.output
    return config, data


class TestSetup:
    def test_setup_creates_config(self, tmp_path: Path):
        config = tmp_path / "grading_config.yaml"
        result = _invoke(config, "setup")
        assert result.exit_code == 0
        assert config.exists()

    def test_setup_keeps_existing_without_force(self, tmp_path: Path):
        config = tmp_path / "grading_config.yaml"
        _invoke(config, "setup")
        config.write_text(config.read_text(encoding="utf-8") + "# eigene Notiz\n",
                          encoding="utf-8")

        result = _invoke(config, "setup")
        assert "existiert bereits" in result.output
        assert "# eigene Notiz" in config.read_text(encoding="utf-8")

        _invoke(config, "setup", "--force")
        assert "# eigene Notiz" not in config.read_text(encoding="utf-8")

    def test_config_show(self, tmp_path: Path):
        config = tmp_path / "grading_config.yaml"
        _invoke(config, "setup")
        result = _invoke(config, "config", "show")
        assert result.exit_code == 0
        assert "Notenkonfiguration" in result.output

    def test_missing_config_aborts(self, tmp_path: Path):
        result = _invoke(tmp_path / "fehlt.yaml", "config", "show")
        assert result.exit_code == 1
        assert "Keine Konfiguration" in result.output


class TestDataCommands:
    def test_generate_writes_json(self, tmp_path: Path):
        _, data = _prepare(tmp_path)
        assert data.exists()

    def test_validate_generated_data(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        result = _invoke(config, "validate", "--json-path", str(data))
        assert result.exit_code == 0

    def test_validate_missing_data(self, tmp_path: Path):
        config, _ = _prepare(tmp_path)
        result = _invoke(config, "validate", "--json-path", str(tmp_path / "nope.json"))
        assert result.exit_code == 1
        assert "Keine Datendatei" in result.output

    def test_grades_table(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        result = _invoke(config, "grades", "--json-path", str(data))
        assert result.exit_code == 0
        assert "Notas calculadas" in result.output


class TestReportCommand:
    def test_planning_pdf(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        out = tmp_path / "pdf"
        result = _invoke(config, "report", "planning", "-s", "srv-01",
                         "--json-path", str(data), "-o", str(out))
        assert result.exit_code == 0, result.output
        files = list(out.glob("Planning_*.pdf"))
        assert len(files) == 1
        assert files[0].read_bytes().startswith(b"%PDF")

    def test_service_required(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        result = _invoke(config, "report", "tracking", "--json-path", str(data))
        assert result.exit_code == 2
        assert "--service" in result.output

    def test_unevaluated_service_fails(self, tmp_path: Path):
        """Der letzte Demo-Service hat keine Bewertung."""
        config, data = _prepare(tmp_path)
        out = tmp_path / "pdf"
        result = _invoke(config, "report", "evaluation", "-s", "srv-09",
                         "--json-path", str(data), "-o", str(out))
        assert result.exit_code == 1
        assert not list(out.glob("*.pdf"))

    def test_record_single_student(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        out = tmp_path / "pdf"
        result = _invoke(config, "report", "record", "-a", "st-01",
                         "--json-path", str(data), "-o", str(out))
        assert result.exit_code == 0, result.output
        assert len(list(out.glob("Informe_*.pdf"))) == 1

    def test_gradebook(self, tmp_path: Path):
        config, data = _prepare(tmp_path)
        target = tmp_path / "xlsx" / "notas.xlsx"
        result = _invoke(config, "gradebook", "--json-path", str(data), "-o", str(target))
        assert result.exit_code == 0, result.output
        assert target.exists()
