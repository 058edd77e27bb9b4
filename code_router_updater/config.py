from __future__ import annotations

from copy import deepcopy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

OPENCODE_SCHEMA_URL = "https://opencode.ai/config.json"
OPENROUTER_NAMESPACE = "openrouter"


class _PassthroughModel(BaseModel):
    """Typed view over a JSON object that keeps unknown keys and their order."""

    model_config = ConfigDict(extra="allow")

    _key_order: list[str] = PrivateAttr(default_factory=list)

    @classmethod
    def from_raw(cls, value: Any):
        payload = value if isinstance(value, dict) else {}
        instance = cls.model_validate(payload)
        instance._key_order = [str(key) for key in payload]
        return instance

    def to_dict(self) -> dict[str, Any]:
        dumped = self.model_dump(by_alias=True)
        for name, field in type(self).model_fields.items():
            if name not in self.model_fields_set:
                dumped.pop(field.alias or name, None)

        ordered: dict[str, Any] = {}
        for key in self._key_order:
            if key in dumped:
                ordered[key] = dumped.pop(key)
        ordered.update(dumped)
        return deepcopy(ordered)


class ModelEntry(_PassthroughModel):
    name: str | None = None
    options: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def _drop_non_string_name(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class OpencodeConfigDocument(_PassthroughModel):
    schema_url: Any = Field(default=None, alias="$schema")
    provider: dict[str, Any] | None = None

    @field_validator("provider", mode="before")
    @classmethod
    def _drop_non_object_provider(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None

    def provider_section(self, namespace: str = OPENROUTER_NAMESPACE) -> dict[str, Any]:
        section = (self.provider or {}).get(namespace)
        return section if isinstance(section, dict) else {}

    def provider_models(
        self,
        namespace: str = OPENROUTER_NAMESPACE,
    ) -> dict[str, ModelEntry]:
        models = self.provider_section(namespace).get("models")
        if not isinstance(models, dict):
            return {}
        return {
            str(model_id): ModelEntry.from_raw(entry)
            for model_id, entry in models.items()
            if isinstance(entry, dict)
        }


def coerce_config_document(value: Any) -> OpencodeConfigDocument:
    if isinstance(value, OpencodeConfigDocument):
        return value
    return OpencodeConfigDocument.from_raw(value)
