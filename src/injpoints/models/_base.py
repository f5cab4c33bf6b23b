"""Base model for injpoints documents.

Every stored or wire-facing model inherits from :class:`InjBaseModel`
which provides:

* ``alias_generator=to_camel`` so snake_case attributes serialize to the
  camelCase keys JSON clients send and read.
* ``populate_by_name=True`` so internal code can build models with the
  Python attribute names.
* :meth:`to_json` returning the camelCase, JSON-ready dict.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Number = int | float


class InjBaseModel(BaseModel):
    """Frozen base for documents produced at the validation boundary."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json(self) -> dict[str, Any]:
        """Return the document as plain JSON types with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
