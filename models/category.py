"""
Category schemas.

Categories are managed elsewhere; the upload only reads them.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class CategoryResponse(BaseSchema):
    """Row of the categories table."""

    id: str = Field(..., description="Category UUID")
    name: str = Field(..., description="Display name")


@dataclass
class CategoryLookup:
    """
    Read-only name -> id snapshot of the categories table.

    Names match case-insensitively, after trimming.
    """

    _ids: dict[str, str] = field(default_factory=dict)
    _names: list[str] = field(default_factory=list)

    @classmethod
    def from_categories(cls, categories: list[CategoryResponse]) -> "CategoryLookup":
        lookup = cls()
        for category in categories:
            key = category.name.strip().lower()
            if key not in lookup._ids:
                lookup._names.append(category.name)
            lookup._ids[key] = category.id
        return lookup

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> "CategoryLookup":
        """Build from a plain {name: id} dict (scripts and tests)."""
        return cls.from_categories(
            [CategoryResponse(id=cat_id, name=name) for name, cat_id in mapping.items()]
        )

    def resolve(self, name: str) -> Optional[str]:
        """Return the category id for a display name, or None if unknown."""
        return self._ids.get(name.strip().lower())

    @property
    def names(self) -> list[str]:
        """Known category names in table order."""
        return list(self._names)

    def __len__(self) -> int:
        return len(self._ids)
