"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/allocator.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Identifier allocation for imported projects and documents.
                Passed explicitly into the importer so tests can supply
                deterministic sequences.
------------------------------------------------------------------------------
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Tuple

from annotaloop.errors import IdentifierExhaustion


class IdentifierAllocator(ABC):
    """Hands out fresh integer identifiers."""

    @abstractmethod
    def next_project_id(self) -> int:
        pass

    @abstractmethod
    def next_document_id(self) -> int:
        pass


def _check_counter(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise IdentifierExhaustion(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise IdentifierExhaustion(f"{name} must be positive, got {value}")
    return value


class SequentialAllocator(IdentifierAllocator):
    """
    Counts upwards from the given start values.

    Raises:
        IdentifierExhaustion: If a start value is not a positive integer.
    """

    def __init__(self, next_project_id: int = 1, next_document_id: int = 1) -> None:
        self._next_project = _check_counter("next_project_id", next_project_id)
        self._next_document = _check_counter("next_document_id", next_document_id)

    @classmethod
    def from_existing(cls, project_ids: Iterable[int], document_ids: Iterable[int]) -> "SequentialAllocator":
        """Starts right after the highest identifiers already in use."""
        return cls(
            next_project_id=max(project_ids, default=0) + 1,
            next_document_id=max(document_ids, default=0) + 1,
        )

    def next_project_id(self) -> int:
        value = self._next_project
        self._next_project += 1
        return value

    def next_document_id(self) -> int:
        value = self._next_document
        self._next_document += 1
        return value

    def peek(self) -> Tuple[int, int]:
        """Next values without consuming them (project, document)."""
        return (self._next_project, self._next_document)
