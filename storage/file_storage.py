"""
File-based storage backend implementation.

Reads and writes ontology documents on the filesystem through rdflib, picking
the serialisation from the file extension.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from rdflib import Graph
from rdflib.util import guess_format

from core.model import Ontology
from storage.base import StorageBackend, StorageError
from storage.rdf_mapping import OntologyGraphReader, OntologyGraphWriter, UnsupportedConstruct

logger = logging.getLogger(__name__)

EXTENSION_FORMATS = {
    '.owl': 'xml',
    '.rdf': 'xml',
    '.xml': 'xml',
    '.ttl': 'turtle',
    '.nt': 'nt',
    '.n3': 'n3',
    '.jsonld': 'json-ld',
}


class FileStorage(StorageBackend):
    """
    File-based storage implementation.

    Ontologies are serialised with the OWL 2 RDF mapping; the format follows
    the file extension unless one is given explicitly.
    """

    def _initialize(self):
        """Initialize the file storage backend."""
        self.default_format = self.config.get('save_format', 'xml')

    def format_for(self, path: Path, fallback: Optional[str] = None) -> str:
        """Serialisation format for a path."""
        fmt = EXTENSION_FORMATS.get(path.suffix.lower()) or guess_format(str(path))
        return fmt or fallback or self.default_format

    def load(self, location: str) -> Tuple[Ontology, Iterable[Tuple[str, str]]]:
        """
        Load an ontology document from disk.

        Args:
            location: Path of the document

        Returns:
            Tuple of the loaded ontology and the prefixes the document binds

        Raises:
            StorageError: If the file is missing, unreadable or not an ontology
        """
        path = Path(location)
        if not path.is_file():
            raise StorageError(f"Ontology file not found: {path}", str(path))

        fmt = self.format_for(path, 'xml')
        graph = Graph()
        try:
            graph.parse(str(path), format=fmt)
        except Exception as e:
            raise StorageError(f"Failed to parse {path} as {fmt}: {str(e)}", str(path))

        reader = OntologyGraphReader()
        try:
            ontology = reader.read(graph, default_iri=path.resolve().as_uri())
        except UnsupportedConstruct as e:
            raise StorageError(f"Failed to read ontology from {path}: {str(e)}", str(path))

        logger.info(f"Loaded {ontology.axiom_count} axioms from {path} ({fmt})")
        return ontology, reader.prefixes(graph)

    def save(self, ontology: Ontology, location: str, format: Optional[str] = None,
             prefixes: Optional[Iterable[Tuple[str, str]]] = None) -> Dict[str, Any]:
        """
        Save an ontology document to disk.

        Args:
            ontology: The ontology to write
            location: Target path (parent directories are created)
            format: rdflib format name (inferred from the extension if not provided)
            prefixes: Prefix bindings to write into the document

        Returns:
            Dictionary with the path, format and number of triples written

        Raises:
            StorageError: If the file cannot be written
        """
        path = Path(location)
        fmt = format or self.format_for(path)
        try:
            graph = OntologyGraphWriter(prefixes).write(ontology.iri, ontology.axioms)
        except UnsupportedConstruct as e:
            raise StorageError(f"Failed to serialise {ontology.iri}: {str(e)}", str(path))

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            graph.serialize(destination=str(path), format=fmt)
        except Exception as e:
            raise StorageError(f"Failed to save ontology to {path}: {str(e)}", str(path))

        logger.info(f"Saved {ontology.axiom_count} axioms to {path} ({fmt})")
        return {
            'path': str(path),
            'format': fmt,
            'triples': len(graph),
        }
