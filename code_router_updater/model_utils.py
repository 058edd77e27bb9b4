from __future__ import annotations

import re
from typing import Any

FREE_MODEL_SUFFIX = ":free"

_SEPARATOR_RUNS = re.compile(r"[-_]+")


def model_id_tail(model_id: str) -> str:
    if "/" not in model_id:
        return model_id
    return model_id.rsplit("/", 1)[1]


def title_case_words(value: str) -> str:
    return " ".join(word[0].upper() + word[1:] for word in value.split())


def display_name_from_id(model_id: str) -> str:
    """Derive a readable name from a model id, e.g. ``acme/foo-bar`` -> ``Foo Bar``."""
    spaced = _SEPARATOR_RUNS.sub(" ", model_id_tail(model_id))
    return title_case_words(spaced)


def resolve_display_name(record: dict[str, Any]) -> str:
    raw_name = record.get("name")
    if isinstance(raw_name, str) and raw_name.strip():
        return raw_name.strip()
    return display_name_from_id(str(record["id"]))


def is_free_model_id(model_id: str) -> bool:
    return model_id.endswith(FREE_MODEL_SUFFIX)


def record_model_id(record: Any) -> str | None:
    if not isinstance(record, dict):
        return None
    raw_id = record.get("id")
    if raw_id is None or raw_id == "":
        return None
    return str(raw_id)
