"""Document database abstractions and implementations."""

from chronos.commons.infrastructure.documentdb.base import DocumentDBBase
from chronos.commons.infrastructure.documentdb.mongodb_provider import MongoDBDocumentDB

__all__ = [
    # Base classes
    "DocumentDBBase",
    # Implementations
    "MongoDBDocumentDB",
]
