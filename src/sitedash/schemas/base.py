from __future__ import annotations
from typing import ClassVar, FrozenSet

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    # Wire format is camelCase JSON; Python side uses snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",         # unknown server fields are dropped, never stored
        from_attributes=True,
    )

    def to_payload(self, partial: bool = False) -> dict:
        """JSON-ready body with camelCase keys. `partial` keeps only the fields that were set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=partial)


class EntityModel(APIModel):
    # Server-side entities are immutable snapshots; the cache swaps them whole
    model_config = ConfigDict(frozen=True)

    id: str


class UpdateModel(APIModel):
    """
    Partial update body. Fields left out are untouched on the server; a field
    sent as null must be one the entity itself allows to be null.
    """

    nullable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in sorted(self.model_fields_set):
            if name not in self.nullable and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} must not be null")
        return self
