"""Shared pydantic configuration for persisted schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys.

    The datastore and downstream consumers read records with camelCase
    names (``timeStamp``, ``invalidEndTime``), attributes stay snake_case.
    Hand-written records may carry thresholds and timestamps as JSON
    numbers; string fields accept them as their decimal text.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_json(self) -> str:
        """Serialize with the stored (camelCase) field names."""
        return self.model_dump_json(by_alias=True)
