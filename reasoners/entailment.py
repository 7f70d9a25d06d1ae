"""
Entailment checking on top of classification.

Back-ends only classify, so every axiom type is reduced to questions a
Taxonomy can answer: subsumption between two query classes, satisfiability
of a query class, membership of an individual in a query class, or
inconsistency of the axioms extended with a few extra assertions. Fresh
names used by the reductions live in their own namespace and never leak
into results.
"""

import itertools
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.model import (
    THING_CLASS, LITERAL_TYPE,
    AsymmetricObjectProperty, Axiom, ClassAssertion, ClassExpression, DataHasValue,
    DataMinCardinality, DataPropertyAssertion, DataPropertyDomain, DataSomeValuesFrom,
    Declaration, DifferentIndividuals, DisjointClasses, EquivalentClasses,
    EquivalentObjectProperties, FunctionalDataProperty, FunctionalObjectProperty, Individual,
    InverseFunctionalObjectProperty, InverseObjectProperties, IrreflexiveObjectProperty,
    ObjectHasSelf, ObjectHasValue, ObjectIntersectionOf, ObjectInverseOf, ObjectMinCardinality,
    ObjectOneOf, ObjectPropertyAssertion, ObjectPropertyDomain, ObjectPropertyRange,
    ObjectSomeValuesFrom, OWLClass, ReflexiveObjectProperty, SameIndividual, SubClassOf,
    SubObjectPropertyOf, SymmetricObjectProperty, TransitiveObjectProperty,
)
from .base import InconsistentOntologyError, ReasonerBackend, Taxonomy, UnsupportedProfileError

logger = logging.getLogger(__name__)

QUERY_NS = "http://ontolite.invalid/query#"
FRESH_NS = "http://ontolite.invalid/fresh#"

FRESH_CLASS = OWLClass(FRESH_NS + "Z")
FRESH_INDIVIDUALS = (Individual(FRESH_NS + "x"), Individual(FRESH_NS + "y"))


def query_iri(index: int) -> str:
    return f"{QUERY_NS}Q{index}"


def is_internal(iri: str) -> bool:
    return iri.startswith(QUERY_NS) or iri.startswith(FRESH_NS)


class EntailmentChecker:
    """
    Answers consistency and entailment questions about a fixed axiom set.

    Classification results are cached per set of query expressions, so a
    checker can be asked many questions about the same axioms cheaply.
    """

    def __init__(self, backend: ReasonerBackend, ontology_iri: str, axioms: Iterable[Axiom]):
        self.backend = backend
        self.ontology_iri = ontology_iri
        self.axioms = list(axioms)
        self._cache: Dict[Tuple, Optional[Taxonomy]] = {}

    # -- classification -------------------------------------------------------

    def classify(self, expressions: Sequence[ClassExpression] = (),
                 extra: Sequence[Axiom] = ()) -> Tuple[Taxonomy, List[str]]:
        """
        Classify the axioms (plus ``extra``) with one query class per expression.

        Returns:
            The taxonomy and the query class IRIs, in expression order

        Raises:
            InconsistentOntologyError: If the axioms are inconsistent
        """
        key = (tuple(expressions), tuple(extra))
        iris = [query_iri(i) for i in range(len(expressions))]
        if key not in self._cache:
            queries = dict(zip(iris, expressions))
            try:
                self._cache[key] = self.backend.classify(
                    self.ontology_iri, self.axioms + list(extra), queries)
            except InconsistentOntologyError:
                self._cache[key] = None
        taxonomy = self._cache[key]
        if taxonomy is None:
            raise InconsistentOntologyError(self.ontology_iri)
        return taxonomy, iris

    def is_consistent(self, extra: Sequence[Axiom] = ()) -> bool:
        try:
            self.classify((), extra)
        except InconsistentOntologyError:
            return False
        return True

    # -- primitive questions --------------------------------------------------

    def is_subsumed(self, sub: ClassExpression, sup: ClassExpression) -> bool:
        taxonomy, (q_sub, q_sup) = self.classify((sub, sup))
        return q_sup in taxonomy.subsumers(q_sub)

    def is_unsatisfiable(self, expression: ClassExpression) -> bool:
        taxonomy, (q,) = self.classify((expression,))
        return taxonomy.is_unsatisfiable(q)

    def is_instance(self, individual: Individual, expression: ClassExpression) -> bool:
        taxonomy, (q,) = self.classify((expression,), (Declaration(individual),))
        return q in taxonomy.types.get(individual.iri, ())

    def is_inconsistent_with(self, extra: Sequence[Axiom]) -> bool:
        return not self.is_consistent(tuple(extra))

    # -- entailment -----------------------------------------------------------

    def is_entailed(self, axiom: Axiom) -> bool:
        """
        Check whether the axioms entail ``axiom``.

        Raises:
            InconsistentOntologyError: If the axioms are inconsistent
            UnsupportedProfileError: If the back-end cannot decide this axiom type
        """
        if not self.is_consistent():
            raise InconsistentOntologyError(self.ontology_iri)
        if axiom in self.axioms:
            return True
        return self._reduce(axiom)

    def _reduce(self, axiom: Axiom) -> bool:
        if isinstance(axiom, Declaration):
            return any(axiom.entity in a.signature() for a in self.axioms)
        if isinstance(axiom, SubClassOf):
            return self.is_subsumed(axiom.sub_class, axiom.super_class)
        if isinstance(axiom, EquivalentClasses):
            operands = sorted(axiom.operands, key=repr)
            return all(self.is_subsumed(a, b) and self.is_subsumed(b, a)
                       for a, b in zip(operands, operands[1:]))
        if isinstance(axiom, DisjointClasses):
            return all(self._disjoint(a, b)
                       for a, b in itertools.combinations(sorted(axiom.operands, key=repr), 2))
        if isinstance(axiom, ClassAssertion):
            return self.is_instance(axiom.individual, axiom.class_expression)
        if isinstance(axiom, ObjectPropertyAssertion):
            return self.is_instance(axiom.subject, ObjectHasValue(axiom.property, axiom.object))
        if isinstance(axiom, DataPropertyAssertion):
            return self.is_instance(axiom.subject, DataHasValue(axiom.property, axiom.value))
        if isinstance(axiom, SameIndividual):
            individuals = sorted(axiom.individuals, key=repr)
            return all(self.is_instance(b, ObjectOneOf(frozenset([a])))
                       for a, b in zip(individuals, individuals[1:]))
        if isinstance(axiom, DifferentIndividuals):
            return all(self.is_inconsistent_with([SameIndividual(frozenset(pair))])
                       for pair in itertools.combinations(sorted(axiom.individuals, key=repr), 2))
        if isinstance(axiom, SubObjectPropertyOf):
            return self.is_subsumed(ObjectSomeValuesFrom(axiom.sub_property, FRESH_CLASS),
                                    ObjectSomeValuesFrom(axiom.super_property, FRESH_CLASS))
        if isinstance(axiom, EquivalentObjectProperties):
            operands = sorted(axiom.operands, key=repr)
            return all(self._reduce(SubObjectPropertyOf(a, b)) and self._reduce(SubObjectPropertyOf(b, a))
                       for a, b in zip(operands, operands[1:]))
        if isinstance(axiom, InverseObjectProperties):
            return self._reduce(SubObjectPropertyOf(axiom.first, ObjectInverseOf(axiom.second))) and \
                self._reduce(SubObjectPropertyOf(axiom.second, ObjectInverseOf(axiom.first)))
        if isinstance(axiom, ObjectPropertyDomain):
            return self.is_subsumed(ObjectSomeValuesFrom(axiom.property, THING_CLASS), axiom.domain)
        if isinstance(axiom, ObjectPropertyRange):
            return self.is_subsumed(ObjectSomeValuesFrom(_inverse(axiom.property), THING_CLASS),
                                    axiom.range)
        if isinstance(axiom, DataPropertyDomain):
            return self.is_subsumed(DataSomeValuesFrom(axiom.property, LITERAL_TYPE), axiom.domain)
        if isinstance(axiom, TransitiveObjectProperty):
            prop = axiom.property
            return self.is_subsumed(
                ObjectSomeValuesFrom(prop, ObjectSomeValuesFrom(prop, FRESH_CLASS)),
                ObjectSomeValuesFrom(prop, FRESH_CLASS))
        if isinstance(axiom, SymmetricObjectProperty):
            return self._reduce(SubObjectPropertyOf(axiom.property, _inverse(axiom.property)))
        if isinstance(axiom, FunctionalObjectProperty):
            return self.is_unsatisfiable(ObjectMinCardinality(2, axiom.property, THING_CLASS))
        if isinstance(axiom, InverseFunctionalObjectProperty):
            return self.is_unsatisfiable(
                ObjectMinCardinality(2, _inverse(axiom.property), THING_CLASS))
        if isinstance(axiom, FunctionalDataProperty):
            return self.is_unsatisfiable(DataMinCardinality(2, axiom.property, LITERAL_TYPE))
        if isinstance(axiom, ReflexiveObjectProperty):
            return self.is_subsumed(THING_CLASS, ObjectHasSelf(axiom.property))
        if isinstance(axiom, IrreflexiveObjectProperty):
            return self.is_unsatisfiable(ObjectHasSelf(axiom.property))
        if isinstance(axiom, AsymmetricObjectProperty):
            x, y = FRESH_INDIVIDUALS
            prop = axiom.property
            return self.is_inconsistent_with([
                ClassAssertion(ObjectHasValue(prop, y), x),
                ClassAssertion(ObjectHasValue(prop, x), y),
            ])
        raise UnsupportedProfileError(
            f"Entailment of {type(axiom).__name__} axioms cannot be checked")

    def _disjoint(self, first: ClassExpression, second: ClassExpression) -> bool:
        return self.is_unsatisfiable(ObjectIntersectionOf(frozenset([first, second])))


def _inverse(prop):
    if isinstance(prop, ObjectInverseOf):
        return prop.property
    return ObjectInverseOf(prop)
