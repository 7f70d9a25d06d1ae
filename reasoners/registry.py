"""
Reasoner registry.

Exactly three selectable reasoners, each an immutable record of a display
name, the OWL 2 profile it supports and the back-end it creates.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from .base import ReasonerBackend
from .el_reasoner import ELReasoner
from .owlready_reasoner import HermitReasoner, PelletReasoner

logger = logging.getLogger(__name__)


class SelectedReasoner(Enum):
    """Selectable reasoner records."""
    EL = ("EL", "OWL 2 EL", ELReasoner)
    HERMIT = ("HERMIT", "OWL 2 DL", HermitReasoner)
    PELLET = ("PELLET", "OWL 2 DL", PelletReasoner)

    def __init__(self, display_name: str, profile: str, backend_class: type):
        self.display_name = display_name
        self.profile = profile
        self.backend_class = backend_class

    def __str__(self):
        return f"{self.display_name} ({self.profile})"

    def create(self, config: Optional[Dict] = None) -> ReasonerBackend:
        """Instantiate a fresh back-end for this record."""
        logger.debug(f"Creating {self.display_name} back-end")
        return self.backend_class(config)

    @classmethod
    def from_name(cls, name: str) -> "SelectedReasoner":
        """
        Look a record up by name, case-insensitively.

        Raises:
            ValueError: If no reasoner has that name
        """
        for record in cls:
            if record.display_name.lower() == name.strip().lower():
                return record
        known = ", ".join(record.display_name for record in cls)
        raise ValueError(f"Unknown reasoner '{name}' (expected one of {known})")


REASONERS: List[SelectedReasoner] = list(SelectedReasoner)
