from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from code_router_updater.errors import ConfigReadError
from code_router_updater.persistence import JsonFileStore, expand_user_path

if TYPE_CHECKING:
    from pathlib import Path


def test_json_file_store_read_returns_none_when_missing(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "missing.json")
    assert store.read() is None


def test_json_file_store_write_and_read_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "opencode.json"
    store = JsonFileStore(path)
    original = {"$schema": "https://opencode.ai/config.json", "theme": "dark"}

    store.write(original)

    assert store.read() == original
    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert '\n  "theme": "dark"' in text
    assert list(path.parent.glob(".*.tmp")) == []


def test_json_file_store_write_keeps_non_ascii(tmp_path: Path) -> None:
    path = tmp_path / "opencode.json"
    JsonFileStore(path).write({"name": "Модель"}, atomic=False)

    assert "Модель" in path.read_text(encoding="utf-8")


def test_json_file_store_read_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "opencode.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigReadError, match="not valid JSON"):
        JsonFileStore(path).read()


def test_json_file_store_read_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "opencode.json"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ConfigReadError):
        JsonFileStore(path).read()


def test_backup_if_exists_copies_bytes_verbatim(tmp_path: Path) -> None:
    source = tmp_path / "opencode.json"
    raw = '{ "theme":"dark" ,\n "x": 1 }'
    source.write_text(raw, encoding="utf-8")
    backup = tmp_path / "backups" / "deep" / "opencode.bak"

    assert JsonFileStore(source).backup_if_exists(backup) is True
    assert backup.read_text(encoding="utf-8") == raw


def test_backup_if_exists_returns_false_without_source(tmp_path: Path) -> None:
    backup = tmp_path / "opencode.bak"

    assert JsonFileStore(tmp_path / "missing.json").backup_if_exists(backup) is False
    assert not backup.exists()


def test_expand_user_path_expands_home_marker(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    assert expand_user_path("~") == tmp_path
    assert expand_user_path("~/.config/opencode/opencode.json") == (
        tmp_path / ".config" / "opencode" / "opencode.json"
    )
    assert str(expand_user_path("relative/path.json")) == "relative/path.json"
