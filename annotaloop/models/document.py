"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/models/document.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Data model for a document inside a project. The document refers
                to its owning project by id and to its stored files by an
                opaque storage id.
------------------------------------------------------------------------------
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from annotaloop.models.project import ArchiveRecord, Label, Rule
from annotaloop.models.types import PROCESSED_STATES, DocumentStatus
from annotaloop.naming import get_file_extension


class Document(ArchiveRecord):
    """
    Core record for an uploaded document.
    Runtime state of the annotation pipeline (reviewData) is carried opaquely.
    """
    id: int
    name: str = Field(min_length=1)
    status: DocumentStatus = DocumentStatus.READY
    project_id: int = Field(alias="projectId")
    size: str = ""
    date: str = ""
    tokens: Optional[str] = None
    token_count: Optional[int] = Field(default=None, alias="tokenCount")
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    # Upload kind set by the desktop client ('pdf', 'image', 'text', ...)
    file_type: Optional[str] = Field(default=None, alias="fileType")
    storage_id: Optional[str] = Field(default=None, alias="storageId")
    extracted_text: Optional[str] = Field(default=None, alias="extractedText")
    processing_completed: Optional[bool] = Field(default=None, alias="processingCompleted")
    last_processed_at: Optional[str] = Field(default=None, alias="lastProcessedAt")
    review_data: Optional[Dict[str, Any]] = Field(default=None, alias="reviewData")

    # Document level configuration overrides
    labels: Optional[List[Label]] = None
    rules: Optional[List[Rule]] = None

    @property
    def is_processed(self) -> bool:
        """True once an annotated copy is expected to exist."""
        return self.status in PROCESSED_STATES

    @property
    def file_extension(self) -> str:
        """Extension of the current name, including the dot."""
        return get_file_extension(self.name)
