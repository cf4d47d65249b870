"""Smart dictionary models.

A dictionary entry maps known mis-transcriptions (variants) to one
correct spelling. Entries serialize with camelCase keys so exported
files stay compatible with existing dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DictionaryEntry(BaseModel):
    """A learned correction rule."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = ""
    correct: str
    variants: list[str] = Field(default_factory=list)
    use_count: int = Field(default=0, ge=0, alias="useCount")
    created_at: int = Field(default=0, ge=0, alias="createdAt")  # epoch ms
    last_used_at: int = Field(default=0, ge=0, alias="lastUsedAt")  # epoch ms

    @field_validator("correct")
    @classmethod
    def _correct_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("correct must not be blank")
        return value

    def has_variant(self, variant: str) -> bool:
        """Exact-match membership test."""
        return variant in self.variants

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class Replacement:
    """One (variant -> correct) substitution made by apply_dictionary."""

    from_text: str
    to_text: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"from": self.from_text, "to": self.to_text}


@dataclass
class ApplyResult:
    """Outcome of running the dictionary over a text."""

    result: str
    replacements: list[Replacement] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if at least one replacement was made."""
        return bool(self.replacements)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "result": self.result,
            "replacements": [r.to_dict() for r in self.replacements],
        }
