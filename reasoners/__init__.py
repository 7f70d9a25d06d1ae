"""
Reasoner back-ends for ontolite.

Provides one OWL 2 EL reasoner and two OWL 2 DL tableau reasoners:
- EL: pure-Python saturation
- HERMIT / PELLET: Java reasoners bundled with owlready2
"""

from .base import (
    ContradictoryCharacteristicError, ExplanationError, InconsistentOntologyError,
    ReasonerBackend, ReasoningError, Taxonomy, UnsupportedProfileError,
)
from .registry import REASONERS, SelectedReasoner

__all__ = [
    'ContradictoryCharacteristicError',
    'ExplanationError',
    'InconsistentOntologyError',
    'ReasonerBackend',
    'ReasoningError',
    'Taxonomy',
    'UnsupportedProfileError',
    'REASONERS',
    'SelectedReasoner',
]
