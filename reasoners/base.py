"""
Abstract base class for reasoner back-ends.

A back-end classifies a set of axioms together with a handful of named query
classes and hands back a Taxonomy: told and inferred subsumers for every
class, types for every individual and object-property edges between
individuals. Everything the reasoner adapter needs is derived from that.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import fields, is_dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from core.model import (
    NOTHING, THING, OBJECT_CARDINALITIES, Axiom, ClassExpression, ObjectHasSelf,
    ObjectPropertyCharacteristic, FunctionalObjectProperty, InverseFunctionalObjectProperty,
    AsymmetricObjectProperty, IrreflexiveObjectProperty, ReflexiveObjectProperty,
    SymmetricObjectProperty, TransitiveObjectProperty, SubObjectPropertyOf,
)

logger = logging.getLogger(__name__)


class ReasoningError(Exception):
    """Base exception for reasoning failures."""
    pass


class InconsistentOntologyError(ReasoningError):
    """The ontology has no model, so the requested inference is undefined."""

    def __init__(self, ontology_iri: str, operation: Optional[str] = None):
        self.ontology_iri = ontology_iri
        self.operation = operation
        super().__init__(ontology_iri)

    def __str__(self):
        operation = self.operation or "reasoning"
        return f"{operation} is not possible because <{self.ontology_iri}> is inconsistent!"


class UnsupportedProfileError(ReasoningError):
    """An axiom or query uses constructs outside the back-end's profile."""
    pass


class ContradictoryCharacteristicError(ReasoningError):
    """A property characteristic cannot be combined with the property's others."""
    pass


class ExplanationError(ReasoningError):
    """An explanation was requested for something that does not hold."""
    pass


class Taxonomy:
    """
    Classification result.

    Args:
        classes: Class IRIs in presentation order (query classes included)
        subsumers: class IRI -> IRIs of all classes subsuming it (itself included)
        types: individual IRI -> IRIs of all classes it is an instance of
        relations: object property IRI -> set of (subject IRI, object IRI)
    """

    def __init__(self, classes: Sequence[str], subsumers: Mapping[str, Set[str]],
                 types: Mapping[str, Set[str]], relations: Mapping[str, Set[Tuple[str, str]]]):
        self.classes = list(dict.fromkeys(list(classes) + [THING, NOTHING]))
        self._subsumers = {iri: set(found) | {iri, THING} for iri, found in subsumers.items()}
        self._subsumers.setdefault(THING, {THING})
        self._subsumers[NOTHING] = set(self.classes)
        self.types = {iri: set(found) | {THING} for iri, found in types.items()}
        self.relations = {iri: set(edges) for iri, edges in relations.items()}

    def __contains__(self, iri: str) -> bool:
        return iri in self._subsumers

    def is_unsatisfiable(self, iri: str) -> bool:
        return NOTHING in self._subsumers.get(iri, ())

    def subsumers(self, iri: str) -> Set[str]:
        """All subsumers; unsatisfiable classes are subsumed by everything."""
        if self.is_unsatisfiable(iri):
            return set(self.classes)
        return set(self._subsumers.get(iri, {iri, THING}))

    def equivalents(self, iri: str) -> List[str]:
        return [other for other in self.classes
                if other != iri and other in self.subsumers(iri) and iri in self.subsumers(other)]

    def super_classes(self, iri: str) -> List[str]:
        equivalent = set(self.equivalents(iri)) | {iri}
        found = self.subsumers(iri)
        return [other for other in self.classes if other in found and other not in equivalent]

    def sub_classes(self, iri: str) -> List[str]:
        equivalent = set(self.equivalents(iri)) | {iri}
        return [other for other in self.classes
                if other not in equivalent and iri in self.subsumers(other)]

    def unsatisfiable_classes(self) -> List[str]:
        return [iri for iri in self.classes if iri != NOTHING and self.is_unsatisfiable(iri)]

    def instances(self, iri: str) -> List[str]:
        return [ind for ind, found in self.types.items() if iri in found]

    def property_values(self, property_iri: str) -> List[Tuple[str, str]]:
        return sorted(self.relations.get(property_iri, ()))


class ReasonerBackend(ABC):
    """
    Abstract base class for reasoner back-ends.

    All back-ends must inherit from this class and implement ``classify``.
    """

    name = "abstract"
    profile = "OWL 2 DL"

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize the back-end.

        Args:
            config: Back-end specific settings
        """
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def classify(self, ontology_iri: str, axioms: Iterable[Axiom],
                 queries: Optional[Mapping[str, ClassExpression]] = None) -> Taxonomy:
        """
        Classify axioms plus named query classes.

        Args:
            ontology_iri: IRI of the ontology the axioms belong to
            axioms: Axioms to reason over
            queries: query class IRI -> class expression it is equivalent to

        Returns:
            Taxonomy covering every class, query class and individual

        Raises:
            InconsistentOntologyError: If the axioms are inconsistent
            UnsupportedProfileError: If a query uses unsupported constructs
            ReasoningError: If the back-end fails
        """
        pass

    def check_profile(self, axiom: Axiom):
        """
        Reject axioms the back-end's profile cannot express.

        Raises:
            UnsupportedProfileError: If the axiom falls outside the profile
        """
        return None

    def check_characteristic(self, axioms: Iterable[Axiom], new_axiom: ObjectPropertyCharacteristic):
        """
        Check a new characteristic against the property's existing ones.

        Non-simple properties (transitive, or with a transitive sub-property)
        may not be functional, inverse functional, irreflexive or asymmetric,
        nor appear in cardinality or Self restrictions.

        Raises:
            ContradictoryCharacteristicError: If the combination is not admitted
        """
        axioms = list(axioms)
        prop = new_axiom.property
        existing = {type(a) for a in axioms
                    if isinstance(a, ObjectPropertyCharacteristic) and a.property == prop}
        label = getattr(prop, "iri", str(prop))

        for first, second in ((ReflexiveObjectProperty, IrreflexiveObjectProperty),
                              (SymmetricObjectProperty, AsymmetricObjectProperty)):
            pair = {first, second}
            if type(new_axiom) in pair and (pair - {type(new_axiom)}) & existing:
                raise ContradictoryCharacteristicError(
                    f"{label} cannot be both {first.characteristic} and {second.characteristic}")

        simple_only = (FunctionalObjectProperty, InverseFunctionalObjectProperty,
                       IrreflexiveObjectProperty, AsymmetricObjectProperty)
        non_simple = self.non_simple_properties(axioms + [new_axiom])
        if isinstance(new_axiom, simple_only) and prop in non_simple:
            raise ContradictoryCharacteristicError(
                f"{label} is transitive (or has a transitive sub-property) and cannot be "
                f"{new_axiom.characteristic} in {self.profile}")
        if isinstance(new_axiom, TransitiveObjectProperty):
            for axiom in axioms:
                if isinstance(axiom, simple_only) and axiom.property in non_simple:
                    raise ContradictoryCharacteristicError(
                        f"{label} cannot be Transitive because "
                        f"{getattr(axiom.property, 'iri', axiom.property)} is "
                        f"{axiom.characteristic} in {self.profile}")
            for axiom in axioms:
                for expression in _restrictions(axiom):
                    if expression.property in non_simple:
                        raise ContradictoryCharacteristicError(
                            f"{label} cannot be Transitive because it is used in a "
                            f"cardinality or Self restriction")

    def check_restrictions(self, axioms: Iterable[Axiom], new_axiom: Axiom):
        """
        Reject cardinality and Self restrictions on non-simple properties.

        Raises:
            ContradictoryCharacteristicError: If ``new_axiom`` restricts a non-simple property
        """
        non_simple = self.non_simple_properties(axioms)
        for expression in _restrictions(new_axiom):
            if expression.property in non_simple:
                label = getattr(expression.property, "iri", expression.property)
                raise ContradictoryCharacteristicError(
                    f"{label} is transitive (or has a transitive sub-property) and cannot be "
                    f"used in a cardinality or Self restriction")

    @staticmethod
    def non_simple_properties(axioms: Iterable[Axiom]) -> Set:
        """Transitive properties and every property one of them is a sub-property of."""
        axioms = list(axioms)
        supers: Dict = {}
        for axiom in axioms:
            if isinstance(axiom, SubObjectPropertyOf):
                supers.setdefault(axiom.sub_property, set()).add(axiom.super_property)
        result = set()
        pending = [a.property for a in axioms if isinstance(a, TransitiveObjectProperty)]
        while pending:
            prop = pending.pop()
            if prop in result:
                continue
            result.add(prop)
            pending.extend(supers.get(prop, ()))
        return result

    def close(self):
        """Release back-end resources."""
        pass


def _restrictions(obj):
    """Cardinality and Self restrictions occurring anywhere in ``obj``."""
    if isinstance(obj, OBJECT_CARDINALITIES + (ObjectHasSelf,)):
        yield obj
    if is_dataclass(obj):
        for f in fields(obj):
            yield from _restrictions(getattr(obj, f.name))
    elif isinstance(obj, (frozenset, tuple)):
        for item in obj:
            yield from _restrictions(item)
