"""Category models: the stored flat record and the computed tree node."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from lumina.models.rows import NULL_SENTINEL, safe_get


CATEGORY_COLUMNS = [
    "CategoryID",
    "CategoryName",
    "ParentCategoryID",
]


class CategoryRecord(BaseModel):
    """One row of the Categories tab."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    parent_id: Optional[str] = None

    def to_row(self) -> list:
        return [self.id, self.name, self.parent_id or NULL_SENTINEL]

    @classmethod
    def from_row(cls, row: list) -> "CategoryRecord":
        parent = safe_get(row, 2)
        return cls(
            id=safe_get(row, 0),
            name=safe_get(row, 1),
            parent_id=None if parent in ("", NULL_SENTINEL) else parent,
        )


class CategoryNode(BaseModel):
    """
    A category with its children attached.

    Nodes are rebuilt from the flat records on every change and are
    never edited directly.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    children: list["CategoryNode"] = Field(default_factory=list)
