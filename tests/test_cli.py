"""CLI surface tests using typer.testing.CliRunner."""

from __future__ import annotations

import json
import logging
import sqlite3
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from perfload import __version__
from perfload._constants import BURN_IN_FILE
from perfload.cli import app
from perfload.jenkins import JenkinsError
from perfload.upload import FileOutcome, UploadSummary
from tests.conftest import BURN_IN_ROWS, make_metadata, write_workbook

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the root logger changes made by setup_logging()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def write_config(tmp_path, db_path, **extra) -> str:
    lines = ["name: fpa-perf", "database:", f"  path: {db_path}"]
    for key, value in extra.items():
        lines.append(f"{key}: {value}")
    path = tmp_path / "perfload.yaml"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


def write_metadata(tmp_path, **overrides) -> str:
    path = tmp_path / "build.json"
    path.write_text(json.dumps(make_metadata(**overrides)))
    return str(path)


def run_count(db_path) -> int:
    connection = sqlite3.connect(db_path)
    try:
        return connection.execute("SELECT COUNT(*) FROM TEST_RUN").fetchone()[0]
    finally:
        connection.close()


# =============================================================================
# version command
# =============================================================================


class TestVersionCommand:
    """Tests for 'perfload version'."""

    def test_version_output(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# init command
# =============================================================================


class TestInitCommand:
    """Tests for 'perfload init'."""

    def test_init_creates_file(self, tmp_path):
        output = tmp_path / "perfload.yaml"
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 0
        assert "name: fpa-perf" in output.read_text()

    def test_init_custom_name(self, tmp_path):
        output = tmp_path / "out.yaml"
        result = runner.invoke(app, ["init", "--output", str(output), "--name", "nightly"])
        assert result.exit_code == 0
        assert "name: nightly" in output.read_text()

    def test_init_refuses_overwrite(self, tmp_path):
        output = tmp_path / "existing.yaml"
        output.write_text("name: keep\n")
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 1
        assert output.read_text() == "name: keep\n"

    def test_init_force(self, tmp_path):
        output = tmp_path / "existing.yaml"
        output.write_text("name: keep\n")
        result = runner.invoke(app, ["init", "--output", str(output), "--force"])
        assert result.exit_code == 0
        assert "name: fpa-perf" in output.read_text()


# =============================================================================
# upload command
# =============================================================================


@pytest.mark.integration
class TestUploadCommand:
    """Tests for 'perfload upload'."""

    def test_upload_all_files(self, tmp_path, workbook_dir):
        db_path = tmp_path / "perf.db"
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "--metadata",
                write_metadata(tmp_path),
                "--config",
                write_config(tmp_path, db_path),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Loaded 5 runs" in result.output
        assert run_count(db_path) == 5

    def test_partial_failure_still_succeeds(self, tmp_path):
        downloads = tmp_path / "downloads"
        downloads.mkdir()
        write_workbook(downloads / BURN_IN_FILE, {"results": BURN_IN_ROWS})
        db_path = tmp_path / "perf.db"

        result = runner.invoke(
            app,
            [
                "upload",
                str(downloads),
                "-m",
                write_metadata(tmp_path),
                "-c",
                write_config(tmp_path, db_path),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "2 of 3 files failed" in result.output
        assert run_count(db_path) == 2

    def test_all_files_fail(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(
            app,
            [
                "upload",
                str(empty),
                "-m",
                write_metadata(tmp_path),
                "-c",
                write_config(tmp_path, tmp_path / "perf.db"),
            ],
        )
        assert result.exit_code == 1
        assert "All file uploads failed" in result.output

    def test_database_override(self, tmp_path, workbook_dir):
        override = tmp_path / "other.db"
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "-m",
                write_metadata(tmp_path),
                "-c",
                write_config(tmp_path, tmp_path / "perf.db"),
                "--database",
                str(override),
            ],
        )
        assert result.exit_code == 0, result.output
        assert run_count(override) == 5
        assert not (tmp_path / "perf.db").exists()

    def test_json_format(self, tmp_path, workbook_dir):
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "-m",
                write_metadata(tmp_path),
                "-c",
                write_config(tmp_path, tmp_path / "perf.db"),
                "--format",
                "json",
            ],
        )
        assert result.exit_code == 0, result.output
        assert '"total_results": 8' in result.output

    def test_error_text_with_markup_is_printed_verbatim(self, tmp_path, workbook_dir):
        summary = UploadSummary(
            directory=workbook_dir,
            outcomes=[
                FileOutcome("burn-in", workbook_dir / BURN_IN_FILE, True, runs=1, results=2),
                FileOutcome(
                    "regression",
                    workbook_dir / "regression_dolphin.xlsx",
                    False,
                    error="bad [/x] tag",
                ),
            ],
        )
        with patch("perfload.cli.Uploader") as uploader_cls:
            uploader_cls.return_value.upload_all.return_value = summary
            result = runner.invoke(
                app,
                [
                    "upload",
                    str(workbook_dir),
                    "-m",
                    write_metadata(tmp_path),
                    "-c",
                    write_config(tmp_path, tmp_path / "perf.db"),
                ],
            )

        assert result.exit_code == 0, result.output
        assert "bad [/x] tag" in result.output

    def test_metadata_missing_field(self, tmp_path, workbook_dir):
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "-m",
                write_metadata(tmp_path, id=None),
                "-c",
                write_config(tmp_path, tmp_path / "perf.db"),
            ],
        )
        assert result.exit_code == 1
        assert "Missing required field 'id'" in result.output

    def test_metadata_file_missing(self, tmp_path, workbook_dir):
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "-m",
                str(tmp_path / "absent.json"),
                "-c",
                write_config(tmp_path, tmp_path / "perf.db"),
            ],
        )
        assert result.exit_code == 1

    def test_metadata_option_required(self, tmp_path, workbook_dir):
        result = runner.invoke(app, ["upload", str(workbook_dir)])
        assert result.exit_code != 0

    def test_store_unreachable(self, tmp_path, workbook_dir):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = runner.invoke(
            app,
            [
                "upload",
                str(workbook_dir),
                "-m",
                write_metadata(tmp_path),
                "-c",
                write_config(tmp_path, blocker / "perf.db"),
            ],
        )
        assert result.exit_code == 1
        assert "Database connection failed" in result.output


# =============================================================================
# config resolution
# =============================================================================


class TestConfigResolution:
    """Tests for config discovery and config errors."""

    def test_no_config_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 1
        assert "perfload.yaml not found" in result.output

    def test_default_config_discovered(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "perfload.yaml").write_text("name: fpa-perf\n")
        result = runner.invoke(app, ["run"])
        # Found and loaded; fails later on the missing Jenkins token
        assert result.exit_code == 1
        assert "API token not found" in result.output

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("name: x\nlog_level: LOUD\n")
        result = runner.invoke(app, ["run", "--config", str(path)])
        assert result.exit_code == 1
        assert "log_level" in result.output

    def test_config_file_missing(self, tmp_path):
        result = runner.invoke(app, ["run", "--config", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1
        assert "File not found" in result.output


# =============================================================================
# run command
# =============================================================================


@pytest.mark.integration
class TestRunCommand:
    """Tests for 'perfload run' with the Jenkins client mocked."""

    def test_download_then_upload(self, tmp_path, workbook_dir):
        db_path = tmp_path / "perf.db"
        config = write_config(tmp_path, db_path, save_dir=str(workbook_dir))

        with patch("perfload.cli.JenkinsClient") as client_cls:
            client_cls.return_value.download_artifacts.return_value = make_metadata()
            result = runner.invoke(app, ["run", "-c", config])

        assert result.exit_code == 0, result.output
        client_cls.return_value.download_artifacts.assert_called_once_with(workbook_dir)
        assert run_count(db_path) == 5

    def test_download_failure(self, tmp_path):
        config = write_config(tmp_path, tmp_path / "perf.db")

        with patch("perfload.cli.JenkinsClient") as client_cls:
            client_cls.return_value.download_artifacts.side_effect = JenkinsError(
                "Not all required files were found in artifacts: regression_dolphin.xlsx"
            )
            result = runner.invoke(app, ["run", "-c", config])

        assert result.exit_code == 1
        assert "Artifact download failed" in result.output
        assert not (tmp_path / "perf.db").exists()

    def test_metadata_without_id(self, tmp_path, workbook_dir):
        config = write_config(tmp_path, tmp_path / "perf.db", save_dir=str(workbook_dir))

        with patch("perfload.cli.JenkinsClient") as client_cls:
            client_cls.return_value.download_artifacts.return_value = make_metadata(id=None)
            result = runner.invoke(app, ["run", "-c", config])

        assert result.exit_code == 1
        assert "Missing required field 'id'" in result.output
