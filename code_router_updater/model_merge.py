from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from code_router_updater.config import (
    OPENCODE_SCHEMA_URL,
    OPENROUTER_NAMESPACE,
    ModelEntry,
    coerce_config_document,
)
from code_router_updater.model_utils import (
    is_free_model_id,
    record_model_id,
    resolve_display_name,
)

FREE_AGGREGATE_MODEL_ID = "openrouter/free"
FREE_AGGREGATE_MODEL_NAME = "OpenRouter Free"
FREE_PROVIDER_OPTIONS_KEY = "OpenRouter"


@dataclass(frozen=True)
class ModelMappingStats:
    total: int
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)
    free_variants: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "added": len(self.added),
            "removed": len(self.removed),
            "renamed": len(self.renamed),
            "free_variants": self.free_variants,
        }


def build_model_mapping(
    fetched: Iterable[Any],
    existing: Mapping[str, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """Merge freshly fetched model records with previously stored entries.

    Every fetched id ends up in the result with its latest display name.
    Stored fields other than ``name`` (operator ``options`` in particular)
    carry over. Ids that are only present in ``existing`` are dropped. The
    free aggregate entry is always present, and ``:free`` variants always
    have an ``options.OpenRouter.provider.order`` list.

    Neither ``fetched`` nor ``existing`` is mutated.
    """
    previous = existing or {}
    result: dict[str, dict[str, Any]] = {}

    for record in fetched:
        model_id = record_model_id(record)
        if model_id is None:
            continue

        entry = _copy_existing_entry(previous.get(model_id))
        entry["name"] = resolve_display_name({**record, "id": model_id})
        if is_free_model_id(model_id):
            entry = _with_free_provider_order(entry)
        result[model_id] = entry

    if FREE_AGGREGATE_MODEL_ID not in result:
        entry = _copy_existing_entry(previous.get(FREE_AGGREGATE_MODEL_ID))
        entry["name"] = FREE_AGGREGATE_MODEL_NAME
        result[FREE_AGGREGATE_MODEL_ID] = entry

    return result


def merge_into_config(
    existing_config: Any,
    new_models: Mapping[str, Any],
    *,
    namespace: str = OPENROUTER_NAMESPACE,
) -> dict[str, Any]:
    """Return a copy of ``existing_config`` with the provider models replaced.

    Keys outside ``provider.<namespace>.models`` are passed through as they
    are. ``$schema`` is only filled in when the document does not carry one.
    """
    document = coerce_config_document(existing_config).to_dict()

    provider = document.get("provider")
    if not isinstance(provider, dict):
        provider = {}
        document["provider"] = provider

    section = provider.get(namespace)
    if not isinstance(section, dict):
        section = {}
        provider[namespace] = section

    section["models"] = {
        str(model_id): deepcopy(entry) for model_id, entry in new_models.items()
    }

    if "$schema" not in document:
        document["$schema"] = OPENCODE_SCHEMA_URL
    return document


def summarize_model_mapping(
    previous: Mapping[str, Any] | None,
    current: Mapping[str, Mapping[str, Any]],
) -> ModelMappingStats:
    before = previous or {}
    added = [model_id for model_id in current if model_id not in before]
    removed = [model_id for model_id in before if model_id not in current]
    renamed: list[str] = []
    for model_id, entry in current.items():
        if model_id not in before:
            continue
        old_name = _entry_as_dict(before[model_id]).get("name")
        if old_name != entry.get("name"):
            renamed.append(model_id)

    return ModelMappingStats(
        total=len(current),
        added=added,
        removed=removed,
        renamed=renamed,
        free_variants=sum(1 for model_id in current if is_free_model_id(model_id)),
    )


def _entry_as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, ModelEntry):
        return value.to_dict()
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def _copy_existing_entry(value: Any) -> dict[str, Any]:
    return deepcopy(_entry_as_dict(value))


def _with_free_provider_order(entry: dict[str, Any]) -> dict[str, Any]:
    # options -> OpenRouter -> provider -> order; keep whatever is already
    # shaped correctly and replace only the levels that are not.
    options = entry.get("options")
    if not isinstance(options, dict):
        options = {}

    openrouter_options = options.get(FREE_PROVIDER_OPTIONS_KEY)
    if not isinstance(openrouter_options, dict):
        openrouter_options = {}

    provider_options = openrouter_options.get("provider")
    if not isinstance(provider_options, dict):
        provider_options = {}

    if not isinstance(provider_options.get("order"), list):
        provider_options = {**provider_options, "order": []}

    return {
        **entry,
        "options": {
            **options,
            FREE_PROVIDER_OPTIONS_KEY: {
                **openrouter_options,
                "provider": provider_options,
            },
        },
    }
