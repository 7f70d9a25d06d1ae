"""
Reasoner adapter.

Binds one back-end to the session's ontology and answers queries against it.
The binding tracks the ontology revision it last classified; any mutation
makes it dirty and the next query flushes (re-classifies) before answering.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from reasoners.base import InconsistentOntologyError, ReasonerBackend, Taxonomy
from reasoners.entailment import EntailmentChecker, is_internal
from reasoners.registry import SelectedReasoner
from .model import (
    NOTHING, THING, Axiom, ClassExpression, Individual, ObjectProperty, OWLClass, Ontology,
)
from .parser import ManchesterParser

logger = logging.getLogger(__name__)

ClassInput = Union[str, ClassExpression]


class BindingState(Enum):
    """Lifecycle of a reasoner binding."""
    UNBOUND = "unbound"
    BOUND_FRESH = "fresh"
    BOUND_DIRTY = "dirty"
    BOUND_INCONSISTENT = "inconsistent"


class ReasonerAdapter:
    """
    Query interface over the active back-end.

    String inputs are parsed in strict mode, so every name must already be in
    the ontology. All queries except ``is_consistent`` raise
    InconsistentOntologyError while the ontology is inconsistent.
    """

    def __init__(self, ontology: Ontology, selected: SelectedReasoner,
                 parser: ManchesterParser, config: Optional[Dict] = None):
        self.ontology = ontology
        self.selected = selected
        self.parser = parser
        self.backend: ReasonerBackend = selected.create(config)
        self.state = BindingState.UNBOUND
        self._revision: Optional[int] = None
        self._checker: Optional[EntailmentChecker] = None

    def __repr__(self):
        return f"ReasonerAdapter({self.selected.display_name}, {self.state.value})"

    @property
    def name(self) -> str:
        return self.selected.display_name

    @property
    def profile(self) -> str:
        return self.selected.profile

    # -- binding lifecycle ----------------------------------------------------

    def precompute(self):
        """
        Classify the ontology now rather than on the first query.

        Raises:
            InconsistentOntologyError: If the ontology is inconsistent
        """
        self.flush()
        if self.state is BindingState.BOUND_INCONSISTENT:
            raise InconsistentOntologyError(self.ontology.iri, "Precomputing the class hierarchy")

    def flush(self):
        """Re-classify when the ontology changed since the last classification."""
        if self._revision == self.ontology.revision and self.state is not BindingState.UNBOUND:
            return
        if self.state is not BindingState.UNBOUND:
            self.state = BindingState.BOUND_DIRTY
        revision = self.ontology.revision
        self._checker = EntailmentChecker(self.backend, self.ontology.iri, self.ontology.axioms)
        consistent = self._checker.is_consistent()
        self._revision = revision
        self.state = BindingState.BOUND_FRESH if consistent else BindingState.BOUND_INCONSISTENT
        logger.debug(f"{self.name} classified {self.ontology.iri} at revision "
                     f"{self._revision}: {self.state.value}")

    @property
    def checker(self) -> EntailmentChecker:
        self.flush()
        return self._checker

    def _consistent_checker(self, operation: str) -> EntailmentChecker:
        checker = self.checker
        if self.state is BindingState.BOUND_INCONSISTENT:
            raise InconsistentOntologyError(self.ontology.iri, operation)
        return checker

    # -- input handling -------------------------------------------------------

    def _class(self, expression: ClassInput) -> ClassExpression:
        if isinstance(expression, str):
            return self.parser.parse_class_expression(expression, strict=True)
        return expression

    def _classify(self, expression: ClassInput, operation: str) -> Tuple[Taxonomy, str]:
        checker = self._consistent_checker(operation)
        ce = self._class(expression)
        if isinstance(ce, OWLClass):
            taxonomy, _ = checker.classify()
            if ce.iri in taxonomy:
                return taxonomy, ce.iri
        taxonomy, (q,) = checker.classify((ce,))
        return taxonomy, q

    def _order_classes(self, iris) -> List[OWLClass]:
        wanted = {iri for iri in iris if iri not in (THING, NOTHING) and not is_internal(iri)}
        ordered = [cls for cls in self.ontology.classes() if cls.iri in wanted]
        known = {cls.iri for cls in ordered}
        ordered.extend(OWLClass(iri) for iri in sorted(wanted - known))
        return ordered

    def _order_individuals(self, iris) -> List[Individual]:
        wanted = {iri for iri in iris if not is_internal(iri)}
        ordered = [ind for ind in self.ontology.individuals() if ind.iri in wanted]
        known = {ind.iri for ind in ordered}
        ordered.extend(Individual(iri) for iri in sorted(wanted - known))
        return ordered

    # -- queries --------------------------------------------------------------

    def is_consistent(self) -> bool:
        self.flush()
        return self.state is not BindingState.BOUND_INCONSISTENT

    def get_equivalent_classes(self, expression: ClassInput) -> List[OWLClass]:
        taxonomy, iri = self._classify(expression, "Computing equivalent classes")
        return self._order_classes(taxonomy.equivalents(iri))

    def get_sub_classes(self, expression: ClassInput) -> List[OWLClass]:
        taxonomy, iri = self._classify(expression, "Computing subclasses")
        return self._order_classes(taxonomy.sub_classes(iri))

    def get_super_classes(self, expression: ClassInput) -> List[OWLClass]:
        taxonomy, iri = self._classify(expression, "Computing superclasses")
        return self._order_classes(taxonomy.super_classes(iri))

    def get_unsatisfiable_classes(self) -> List[OWLClass]:
        taxonomy, _ = self._consistent_checker("Computing unsatisfiable classes").classify()
        return self._order_classes(taxonomy.unsatisfiable_classes())

    def get_types(self, individual: Union[str, Individual]) -> List[OWLClass]:
        checker = self._consistent_checker("Computing types")
        if isinstance(individual, str):
            individual = self.parser.parse_individual(individual, strict=True)
        taxonomy, _ = checker.classify()
        return self._order_classes(taxonomy.types.get(individual.iri, ()))

    def get_all_types(self) -> List[Tuple[Individual, List[OWLClass]]]:
        checker = self._consistent_checker("Computing types")
        taxonomy, _ = checker.classify()
        return [(ind, self._order_classes(taxonomy.types.get(ind.iri, ())))
                for ind in self.ontology.individuals()]

    def get_instances(self, expression: ClassInput) -> List[Individual]:
        taxonomy, iri = self._classify(expression, "Computing instances")
        return self._order_individuals(taxonomy.instances(iri))

    def get_object_property_values(self, prop: Union[str, ObjectProperty]) -> List[Tuple[Individual, Individual]]:
        checker = self._consistent_checker("Computing object property assertions")
        if isinstance(prop, str):
            prop = self.parser.parse_object_property(prop, strict=True)
        taxonomy, _ = checker.classify()
        order = {ind.iri: i for i, ind in enumerate(self.ontology.individuals())}
        pairs = sorted(taxonomy.property_values(prop.iri),
                       key=lambda pair: (order.get(pair[0], len(order)), order.get(pair[1], len(order)),
                                         pair))
        return [(Individual(s), Individual(o)) for s, o in pairs
                if not is_internal(s) and not is_internal(o)]

    def is_entailed(self, axiom: Union[str, Axiom]) -> bool:
        checker = self._consistent_checker("Checking entailment")
        if isinstance(axiom, str):
            axiom = self.parser.parse_axiom(axiom, strict=True)
        return checker.is_entailed(axiom)

    def is_satisfiable(self, expression: ClassInput) -> bool:
        taxonomy, iri = self._classify(expression, "Checking satisfiability")
        return not taxonomy.is_unsatisfiable(iri)

    def close(self):
        self.backend.close()
        self.state = BindingState.UNBOUND
        self._checker = None
