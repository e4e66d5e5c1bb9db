from pathlib import Path

import pytest

from cfg_manager.base import OperationResult, Severity
from cfg_manager.cfg_file import CfgFile
from cfg_manager.customizer import Customization
from tests.cfg_common import (
    PROVIDER_IDS,
    PROVIDERS,
    CapturingLogger,
    StorageProvider,
)


def write_document(cfg: CfgFile, path: Path, text: str) -> None:
    cfg.storage.write_text(path, text)


@pytest.fixture(params=PROVIDERS, ids=PROVIDER_IDS)
def provider(request):
    provider: StorageProvider = request.param()
    yield provider
    provider.cleanup()


def make_cfg(
    provider: StorageProvider,
    tmp_path: Path,
    customization: Customization | None = None,
) -> tuple[CfgFile, CapturingLogger]:
    logger = CapturingLogger()
    storage = provider.create(tmp_path)
    return CfgFile(logger, storage, customization or Customization()), logger


def test_open_missing_document(tmp_path: Path, provider: StorageProvider):
    cfg, logger = make_cfg(provider, tmp_path)

    result = cfg.open(tmp_path / "missing.cfg")

    assert result == OperationResult.FILE_NOT_FOUND
    assert cfg.is_loaded() is False
    assert cfg.get_loaded_config() is None
    assert len(logger.of(Severity.ERROR)) == 1


def test_open_malformed_line_tolerance(tmp_path: Path, provider: StorageProvider):
    cfg, logger = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "x = 1\nbroken_line\ny = 2")

    assert cfg.open(path) == OperationResult.OK

    assert cfg.get_loaded_config() == {"x": "1", "y": "2"}
    warnings = logger.of(Severity.WARN)
    assert len(warnings) == 1
    assert "line 2" in warnings[0]
    assert "broken_line" in warnings[0]


def test_open_annotations(tmp_path: Path, provider: StorageProvider):
    cfg, logger = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(
        cfg,
        path,
        "@annotation debug, verbose\n"
        "\n"
        "level = 3\n"
        "@annotation other\n",
    )

    assert cfg.open(path) == OperationResult.OK

    assert cfg.get_annotations() == ["debug", "verbose"]
    assert cfg.get_loaded_config() == {"level": "3"}
    errors = logger.of(Severity.ERROR)
    assert len(errors) == 1
    assert "line 4" in errors[0]
    assert logger.of(Severity.WARN) == []


def test_open_first_line_without_annotation_is_data(
    tmp_path: Path, provider: StorageProvider
):
    cfg, _ = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "first = 1 // comment\n// only a comment\nsecond = 2")

    assert cfg.open(path) == OperationResult.OK
    assert cfg.get_loaded_config() == {"first": "1", "second": "2"}
    assert cfg.get_annotations() == []


def test_open_duplicate_key_keeps_first(tmp_path: Path, provider: StorageProvider):
    cfg, logger = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "k = 1\nk = 2")

    assert cfg.open(path) == OperationResult.OK

    assert cfg.get_loaded_config() == {"k": "1"}
    warnings = logger.of(Severity.WARN)
    assert len(warnings) == 1
    assert "'k'" in warnings[0]


def test_open_multiple_pairs_per_line(tmp_path: Path, provider: StorageProvider):
    cfg, _ = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, 'a = 1; b = "two words"; c = 3 // trailing')

    assert cfg.open(path) == OperationResult.OK
    assert cfg.get_loaded_config() == {"a": "1", "b": "two words", "c": "3"}


def test_open_replaces_previous_load(tmp_path: Path, provider: StorageProvider):
    cfg, _ = make_cfg(provider, tmp_path)
    first = tmp_path / "first.cfg"
    second = tmp_path / "second.cfg"
    write_document(cfg, first, "@annotation old\na = 1")
    write_document(cfg, second, "b = 2")

    cfg.open(first)
    cfg.open(second)

    assert cfg.get_loaded_config() == {"b": "2"}
    assert cfg.get_annotations() == []

    assert cfg.open(tmp_path / "gone.cfg") == OperationResult.FILE_NOT_FOUND
    assert cfg.get_loaded_config() is None


def test_save_round_trip(tmp_path: Path, provider: StorageProvider):
    cfg, _ = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"

    cfg.add_edited_value("name", "MyApp")
    cfg.add_edited_value("greeting", "hello world")
    cfg.add_edited_annotation("debug")
    cfg.add_edited_annotation("verbose")
    assert cfg.save(path, apply_before_save=True) == OperationResult.OK

    reopened, logger = make_cfg(provider, tmp_path)
    assert reopened.open(path) == OperationResult.OK

    assert reopened.get_loaded_config() == {"name": "MyApp", "greeting": "hello world"}
    assert reopened.get_annotations() == ["debug", "verbose"]
    assert logger.messages == []


def test_save_quoting_format(tmp_path: Path, provider: StorageProvider):
    cfg, _ = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"

    cfg.set_edited_value("key", "hello world")
    cfg.save(path, apply_before_save=True)

    assert cfg.storage.read_lines(path) == ['key = "hello world"']


def test_save_excludes_unapplied_edits(tmp_path: Path, provider: StorageProvider):
    cfg, _ = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "a = 1")
    cfg.open(path)

    cfg.add_edited_value("b", "2")
    assert cfg.save(path) == OperationResult.OK

    assert cfg.storage.read_lines(path) == ['a = "1"']
    assert cfg.get_edited_config() == {"b": "2"}


def test_save_without_overwrite(tmp_path: Path, provider: StorageProvider):
    cfg, logger = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "a = 1")

    cfg.set_edited_value("a", "2")
    result = cfg.save(path, apply_before_save=True, overwrite_if_exists=False)

    assert result == OperationResult.ALREADY_EXISTS
    assert cfg.storage.read_lines(path) == ["a = 1"]
    assert len(logger.of(Severity.ERROR)) == 1

    fresh = tmp_path / "fresh.cfg"
    assert cfg.save(fresh, overwrite_if_exists=False) == OperationResult.OK
    assert cfg.storage.exists(fresh)


def test_save_custom_format_round_trip(tmp_path: Path, provider: StorageProvider):
    custom = Customization(
        comment_marker="#",
        key_value_separator=" ",
        annotation_separator="|",
        use_quotes=True,
        quote_character="'",
    )
    cfg, _ = make_cfg(provider, tmp_path, custom)
    path = tmp_path / "app.cfg"

    cfg.set_edited_value("host", "example.org")
    cfg.add_edited_annotation("prod")
    cfg.add_edited_annotation("eu")
    cfg.save(path, apply_before_save=True)

    assert cfg.storage.read_lines(path) == [
        "@annotation prod| eu",
        "",
        "host 'example.org'",
    ]

    reopened, _ = make_cfg(provider, tmp_path, custom)
    reopened.open(path)
    assert reopened.get_loaded_config() == {"host": "example.org"}
    assert reopened.get_annotations() == ["prod", "eu"]


def test_open_counts_only_newline_separated_lines(
    tmp_path: Path, provider: StorageProvider
):
    cfg, logger = make_cfg(provider, tmp_path)
    path = tmp_path / "app.cfg"
    write_document(cfg, path, "x = 1\x85y z\r\nbroken\ry = 2\n")

    assert cfg.open(path) == OperationResult.OK

    assert cfg.get_loaded_config() == {"x": "1\x85y z", "y": "2"}
    warnings = logger.of(Severity.WARN)
    assert len(warnings) == 1
    assert "line 2" in warnings[0]
