"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/repositories/__init__.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Package initializer for repositories. Exports the project,
                document and blob repositories of the local store.
------------------------------------------------------------------------------
"""

from .project_repo import ProjectRepository
from .document_repo import DocumentRepository
from .blob_repo import BlobRepository
