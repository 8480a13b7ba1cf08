# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Configuration and document models.

``JoshOptions`` validates what a caller hands to :class:`~josh.Josh`.
``ExportDocument`` is the JSON shape written by ``export_json`` and read
back by ``import_json``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from josh.providers.memory import MapProvider


class JoshOptions(BaseModel):
    """Options for a single :class:`~josh.Josh` instance.

    Attributes:
        name: Namespace of the instance.  Required and non-empty.
        provider: Factory called with a ``ProviderContext``; usually a
            provider class.  Defaults to :class:`MapProvider`.
        provider_options: Backend-specific options, passed through verbatim.
        auto_ensure: Stored value substituted when a key is absent on read.
        serializer: ``(value, key, path) -> stored``.  May be async.
        deserializer: ``(stored, key, path) -> value``.  May be async.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(min_length=1)
    provider: Callable[..., Any] = MapProvider
    provider_options: dict[str, Any] = Field(default_factory=dict)
    auto_ensure: Any = None
    serializer: Callable[..., Any] | None = None
    deserializer: Callable[..., Any] | None = None


class ExportDocument(BaseModel):
    """Portable snapshot of one instance's stored values.

    Serialized as ``{"name", "exportTimestamp", "keys"}``.  Reading is
    lenient: unknown fields are ignored, ``exportDate`` is accepted in
    place of ``exportTimestamp``, and ``keys`` may be a list of
    ``{"key", "value"}`` records as written by older exporters.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    export_timestamp: int | None = Field(
        default=None,
        validation_alias=AliasChoices("exportTimestamp", "exportDate", "export_timestamp"),
        serialization_alias="exportTimestamp",
    )
    entries: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("keys", "entries"),
        serialization_alias="keys",
    )

    @field_validator("entries", mode="before")
    @classmethod
    def _records_to_mapping(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        try:
            return {record["key"]: record["value"] for record in value}
        except (KeyError, TypeError) as exc:
            raise ValueError("keys records must carry 'key' and 'value'") from exc
