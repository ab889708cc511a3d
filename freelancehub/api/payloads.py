"""Shared request-body helpers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator


class PayloadModel(BaseModel):
    """Base body model; blank strings from form posts are read as null."""

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data


def cleared_fields(payload: BaseModel) -> frozenset[str]:
    """Fields sent explicitly as null in a PATCH body."""

    return frozenset(name for name in payload.model_fields_set if getattr(payload, name) is None)
