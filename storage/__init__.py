"""
Storage backends for ontolite.

Ontologies are persisted as OWL 2 RDF documents:
- File-based storage (RDF/XML, Turtle, N-Triples, N3, JSON-LD)
- OWL 2 <-> RDF mapping shared with the DL reasoners
"""

from .base import StorageBackend, StorageError
from .file_storage import FileStorage

__all__ = [
    'StorageBackend',
    'StorageError',
    'FileStorage'
]
