from __future__ import annotations

import contextlib
import json
import logging
import shutil
from pathlib import Path
from typing import Any
from uuid import uuid4

from code_router_updater.errors import ConfigReadError, ConfigWriteError

logger = logging.getLogger(__name__)


def expand_user_path(value: str | Path) -> Path:
    return Path(value).expanduser()


def render_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


class JsonFileStore:
    """JSON config persistence with backup and atomic write support."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Any:
        """Return the parsed document, or ``None`` when the file is absent."""
        if not self.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ConfigReadError(str(self.path), str(exc)) from exc

    def backup_if_exists(self, backup_path: str | Path) -> bool:
        if not self.exists():
            return False
        target = Path(backup_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.path, target)
        except OSError as exc:
            raise ConfigWriteError(
                f"Failed to back up '{self.path}' to '{target}': {exc}"
            ) from exc
        logger.info("config_backup_written source=%s backup=%s", self.path, target)
        return True

    def write(self, payload: Any, *, atomic: bool = True) -> None:
        try:
            self._write(render_json(payload), atomic=atomic)
        except OSError as exc:
            raise ConfigWriteError(
                f"Failed to write config '{self.path}': {exc}"
            ) from exc
        logger.info("config_written path=%s", self.path)

    def _write(self, rendered: str, *, atomic: bool) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not atomic:
            self.path.write_text(rendered, encoding="utf-8")
            return

        temp_path = self._temp_path()
        try:
            temp_path.write_text(rendered, encoding="utf-8")
            temp_path.replace(self.path)
        except Exception:
            with contextlib.suppress(Exception):
                temp_path.unlink(missing_ok=True)
            raise

    def _temp_path(self) -> Path:
        token = uuid4().hex
        return self.path.with_name(f".{self.path.name}.{token}.tmp")
