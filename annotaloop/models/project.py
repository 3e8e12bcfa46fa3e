"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/models/project.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Project level records: the project itself and its extraction
                configuration (labels and rules). Field names follow the
                camelCase JSON layout used inside archives.
------------------------------------------------------------------------------
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArchiveRecord(BaseModel):
    """
    Base for all records that travel through archives.
    Unknown fields are rejected so a foreign file never yields a half-filled record.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True, validate_assignment=True)

    def to_json_dict(self) -> Dict[str, Any]:
        """Serializes to the archive JSON layout (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Label(ArchiveRecord):
    """An annotation label. Carried verbatim, never renumbered."""
    id: str
    name: str
    color: str
    desc: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Older exports stored numeric ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def content_key(self) -> Tuple[Any, ...]:
        """Everything but the identifier. Two labels with equal keys are duplicates."""
        return (self.name, self.color, self.desc)


class Rule(ArchiveRecord):
    """An extraction rule evaluated against a document."""
    id: str
    name: str
    logic: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def content_key(self) -> Tuple[Any, ...]:
        return (self.name, self.logic)


class Project(ArchiveRecord):
    """
    A project groups documents together with the labels and rules used to annotate them.
    The id is optional only because batch exports of older versions omitted it.
    """
    id: Optional[int] = None
    name: str = Field(min_length=1)
    desc: Optional[str] = None
    date: Optional[str] = None
    doc_count: int = Field(default=0, alias="docCount")
    labels: List[Label] = Field(default_factory=list)
    rules: List[Rule] = Field(default_factory=list)
