"""
Abstract base class for storage backends.

Defines the interface that all ontology storage implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple

from core.model import Ontology


class StorageError(Exception):
    """Base exception for storage-related errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class StorageBackend(ABC):
    """
    Abstract base class for ontology storage backends.

    All storage implementations must inherit from this class and
    implement the required methods.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize the storage backend.

        Args:
            config: Configuration dictionary for the backend
        """
        self.config = config or {}
        self._initialize()

    @abstractmethod
    def _initialize(self):
        """
        Initialize the storage backend.

        This method should read settings from ``self.config``.
        """
        pass

    @abstractmethod
    def load(self, location: str) -> Tuple[Ontology, Iterable[Tuple[str, str]]]:
        """
        Load an ontology.

        Args:
            location: Where to read the ontology from

        Returns:
            Tuple of the loaded ontology and the prefixes the document binds

        Raises:
            StorageError: If the ontology cannot be read or parsed
        """
        pass

    @abstractmethod
    def save(self, ontology: Ontology, location: str, format: Optional[str] = None,
             prefixes: Optional[Iterable[Tuple[str, str]]] = None) -> Dict[str, Any]:
        """
        Save an ontology.

        Args:
            ontology: The ontology to write
            location: Where to write it
            format: Serialisation format (backend default if not provided)
            prefixes: Prefix bindings to write into the document

        Returns:
            Dictionary containing storage result information

        Raises:
            StorageError: If the ontology cannot be written
        """
        pass

    def close(self):
        """Close any open connections or resources."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
