from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_corpus import __version__, cli
from repo_corpus.config import PipelineState, RunReport, SkippedFile
from repo_corpus.exceptions import RepositoryNotFoundError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_reads_options() -> None:
    settings = cli.parse_args(
        [
            "owner/repo",
            "--branch",
            "develop",
            "--extension",
            ".kt",
            "--output",
            "out.txt",
            "--workers",
            "3",
            "--token",
            "",
        ],
    )

    assert settings.repository == "owner/repo"
    assert settings.branch == "develop"
    assert settings.extension == ".kt"
    assert settings.output == Path("out.txt")
    assert settings.workers == 3  # noqa: PLR2004


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    captured = capsys.readouterr()
    assert __version__ in captured.out


@pytest.mark.unit
def test_prompt_repository_when_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt: "  owner/typed  ")
    settings = cli.parse_args(["--token", ""])

    assert cli.prompt_repository(settings).repository == "owner/typed"


@pytest.mark.unit
def test_prompt_repository_skipped_for_local_archive(mocker: MockerFixture) -> None:
    input_mock = mocker.patch("builtins.input")
    settings = cli.parse_args(["--archive", "snapshot.zip", "--token", ""])

    assert cli.prompt_repository(settings) is settings
    input_mock.assert_not_called()


@pytest.mark.unit
def test_main_reports_fatal_errors(mocker: MockerFixture, capsys: pytest.CaptureFixture[str]) -> None:
    mocker.patch.object(
        cli,
        "run_pipeline",
        side_effect=RepositoryNotFoundError(url="https://api.github.com/repos/o/r", status_code=404),
    )

    exit_code = cli.main(["o/r", "--token", ""])

    assert exit_code == 1
    assert "not found" in capsys.readouterr().err


@pytest.mark.unit
def test_main_prints_report(tmp_path: Path, mocker: MockerFixture, capsys: pytest.CaptureFixture[str]) -> None:
    output = tmp_path / "out.txt"
    run = mocker.patch.object(
        cli,
        "run_pipeline",
        return_value=RunReport(
            repository="o/r",
            branch="main",
            state=PipelineState.DONE,
            output=output,
            records=["A.java"],
            skipped=[SkippedFile(file_name="B.java", reason="Permission denied")],
        ),
    )

    exit_code = cli.main(["o/r", "--output", str(output), "--token", ""])

    assert exit_code == 0
    assert run.call_args.args[0].output == output
    out = capsys.readouterr().out
    assert f"Wrote {output} files=1 skipped=1" in out
    assert "skipped B.java: Permission denied" in out


@pytest.mark.unit
def test_main_rejects_invalid_settings(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["o/r", "--workers", "0", "--token", ""])

    assert exit_code == 2  # noqa: PLR2004
    assert "workers" in capsys.readouterr().err


@pytest.mark.unit
def test_main_routes_logs_to_file(tmp_path: Path, mocker: MockerFixture) -> None:
    log_file = tmp_path / "run.log"
    setup = mocker.patch.object(cli, "setup_logging")
    mocker.patch.object(cli, "run_pipeline", return_value=RunReport(repository="o/r", output=tmp_path / "o.txt"))

    exit_code = cli.main(["o/r", "--log-file", str(log_file), "--verbose", "--token", ""])

    assert exit_code == 0
    setup.assert_called_once_with(str(log_file), verbose=True)


@pytest.mark.unit
def test_main_keeps_default_logging(tmp_path: Path, mocker: MockerFixture) -> None:
    setup = mocker.patch.object(cli, "setup_logging")
    mocker.patch.object(cli, "run_pipeline", return_value=RunReport(repository="o/r", output=tmp_path / "o.txt"))

    assert cli.main(["o/r", "--token", ""]) == 0
    setup.assert_not_called()
