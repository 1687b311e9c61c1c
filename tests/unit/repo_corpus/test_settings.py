from pathlib import Path

import pydantic
import pytest

from repo_corpus.settings import Settings, load_settings, read_config_file


@pytest.mark.unit
def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    settings = Settings()

    assert settings.output_dir.resolve() == Path.cwd().resolve()
    assert settings.output is None
    assert settings.extension == ".java"
    assert settings.branch == ""
    assert settings.workers == 1
    assert settings.token == "from-env"
    assert "from-env" not in repr(settings)


@pytest.mark.unit
def test_settings_extension_gets_a_dot() -> None:
    assert Settings(extension="kt", token="").extension == ".kt"


@pytest.mark.unit
def test_settings_reject_unknown_fields_and_bad_values() -> None:
    with pytest.raises(pydantic.ValidationError):
        Settings(unknown=True)
    with pytest.raises(pydantic.ValidationError):
        Settings(workers=0)


@pytest.mark.unit
def test_load_settings_cli_overrides_yaml(tmp_path: Path) -> None:
    config = tmp_path / "corpus.yaml"
    config.write_text(
        "repository: owner/from-file\nextension: .kt\nmax-entries: 10\ntoken: ''\n",
        encoding="utf-8",
    )

    settings = load_settings(config, repository="owner/from-cli", extension=None)

    assert settings.repository == "owner/from-cli"
    assert settings.extension == ".kt"
    assert settings.max_entries == 10  # noqa: PLR2004


@pytest.mark.unit
def test_read_config_file_requires_mapping(tmp_path: Path) -> None:
    config = tmp_path / "corpus.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="expected a mapping"):
        read_config_file(config)
