"""
OWL 2 EL reasoner.

Consequence-based classification by saturation: every axiom is normalised
into a handful of simple inclusion shapes, then completion rules assign
concepts to one element per concept name until nothing changes. Elements are
reused for equal initial concepts, so the number of elements stays linear in
the size of the input.

Individuals are treated as nominal concepts ``{a}``; assertions become
inclusions on those concepts, which is how types and property edges between
individuals fall out of the same saturation.
"""

from collections import defaultdict, deque
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from core.model import (
    NOTHING, THING, TOP_OBJECT_PROPERTY,
    Axiom, ClassAssertion, ClassExpression, DataHasValue, DataPropertyAssertion,
    DataPropertyDomain, DataPropertyRange, Declaration, DifferentIndividuals, DisjointClasses,
    EntityKind, EquivalentClasses, EquivalentObjectProperties, FunctionalDataProperty,
    ObjectHasValue, ObjectIntersectionOf, ObjectOneOf, ObjectProperty, ObjectPropertyAssertion,
    ObjectPropertyDomain, ObjectPropertyRange, ObjectSomeValuesFrom, OWLClass, SameIndividual,
    SubClassOf, SubDataPropertyOf, SubObjectPropertyOf, TransitiveObjectProperty,
)
from .base import InconsistentOntologyError, ReasonerBackend, Taxonomy, UnsupportedProfileError

# Axioms that are part of the profile but do not change class subsumption or
# instance relations between named individuals in this calculus.
IGNORED_AXIOMS = (
    ObjectPropertyRange, DataPropertyDomain, DataPropertyRange, SubDataPropertyOf,
    FunctionalDataProperty, DifferentIndividuals,
)

EL_AXIOMS = (
    Declaration, SubClassOf, EquivalentClasses, DisjointClasses, ClassAssertion,
    ObjectPropertyAssertion, DataPropertyAssertion, SubObjectPropertyOf,
    EquivalentObjectProperties, TransitiveObjectProperty, ObjectPropertyDomain,
    SameIndividual,
) + IGNORED_AXIOMS


def nominal(iri: str) -> str:
    return "{" + iri + "}"


class _Normaliser:
    """Flattens class expressions into concept names plus inclusion rules."""

    def __init__(self):
        self.told: Dict[str, Set[str]] = defaultdict(set)                  # A ⊑ B
        self.conjunctions: Dict[str, List[Tuple[FrozenSet[str], str]]] = defaultdict(list)
        self.exists_rhs: Dict[str, Set[Tuple[str, str]]] = defaultdict(set)  # A ⊑ ∃r.B
        self.exists_lhs: Dict[Tuple[str, str], Set[str]] = defaultdict(set)  # ∃r.A ⊑ B
        self.role_subs: Dict[str, Set[str]] = defaultdict(set)             # r ⊑ s
        self.transitive: Set[str] = set()
        self._names: Dict[ClassExpression, str] = {}

    def name(self, ce: ClassExpression) -> str:
        if isinstance(ce, OWLClass):
            return ce.iri
        if ce in self._names:
            return self._names[ce]
        if isinstance(ce, ObjectIntersectionOf):
            parts = [self.name(op) for op in ce.operands]
            fresh = self._fresh(ce)
            for part in parts:
                self.told[fresh].add(part)
            self._add_conjunction(frozenset(parts), fresh)
            return fresh
        if isinstance(ce, (ObjectSomeValuesFrom, ObjectHasValue)):
            if not isinstance(ce.property, ObjectProperty):
                raise UnsupportedProfileError(
                    "OWL 2 EL does not allow inverse properties in restrictions")
            if isinstance(ce, ObjectHasValue):
                filler = nominal(ce.value.iri)
            else:
                filler = self.name(ce.filler)
            fresh = self._fresh(ce)
            self.exists_rhs[fresh].add((ce.property.iri, filler))
            self.exists_lhs[(ce.property.iri, filler)].add(fresh)
            return fresh
        if isinstance(ce, ObjectOneOf):
            if len(ce.individuals) != 1:
                raise UnsupportedProfileError(
                    "OWL 2 EL only allows enumerations of a single individual")
            return nominal(next(iter(ce.individuals)).iri)
        if isinstance(ce, DataHasValue):
            # opaque atom: data values are compared structurally
            fresh = f"∃{ce.property.iri}.{{{ce.value.lexical}^^{ce.value.datatype}}}"
            self._names[ce] = fresh
            return fresh
        raise UnsupportedProfileError(
            f"OWL 2 EL does not allow {type(ce).__name__} class expressions")

    def _fresh(self, ce: ClassExpression) -> str:
        fresh = f"_:n{len(self._names)}"
        self._names[ce] = fresh
        return fresh

    def _add_conjunction(self, parts: FrozenSet[str], result: str):
        for part in parts:
            self.conjunctions[part].append((parts, result))

    def sub_class(self, sub: str, sup: str):
        self.told[sub].add(sup)

    def add(self, axiom: Axiom):
        if isinstance(axiom, SubClassOf):
            self.sub_class(self.name(axiom.sub_class), self.name(axiom.super_class))
        elif isinstance(axiom, EquivalentClasses):
            names = [self.name(op) for op in axiom.operands]
            for first in names:
                for second in names:
                    if first != second:
                        self.sub_class(first, second)
        elif isinstance(axiom, DisjointClasses):
            names = [self.name(op) for op in axiom.operands]
            for i, first in enumerate(names):
                for second in names[i + 1:]:
                    self._add_conjunction(frozenset([first, second]), NOTHING)
        elif isinstance(axiom, ClassAssertion):
            self.sub_class(nominal(axiom.individual.iri), self.name(axiom.class_expression))
        elif isinstance(axiom, ObjectPropertyAssertion):
            subject = nominal(axiom.subject.iri)
            self.exists_rhs[subject].add((axiom.property.iri, nominal(axiom.object.iri)))
        elif isinstance(axiom, DataPropertyAssertion):
            value = DataHasValue(axiom.property, axiom.value)
            self.sub_class(nominal(axiom.subject.iri), self.name(value))
        elif isinstance(axiom, SameIndividual):
            names = [nominal(i.iri) for i in axiom.individuals]
            for first in names:
                for second in names:
                    if first != second:
                        self.sub_class(first, second)
        elif isinstance(axiom, SubObjectPropertyOf):
            self._role_sub(axiom.sub_property, axiom.super_property)
        elif isinstance(axiom, EquivalentObjectProperties):
            for first in axiom.operands:
                for second in axiom.operands:
                    if first != second:
                        self._role_sub(first, second)
        elif isinstance(axiom, TransitiveObjectProperty):
            self.transitive.add(self._role(axiom.property))
        elif isinstance(axiom, ObjectPropertyDomain):
            self.exists_lhs[(self._role(axiom.property), THING)].add(self.name(axiom.domain))

    def _role(self, prop) -> str:
        if not isinstance(prop, ObjectProperty):
            raise UnsupportedProfileError("OWL 2 EL does not allow inverse properties")
        return prop.iri

    def _role_sub(self, sub, sup):
        self.role_subs[self._role(sub)].add(self._role(sup))


class _Saturation:
    """Completion rules applied through a work queue until fixpoint."""

    def __init__(self, rules: _Normaliser):
        self.rules = rules
        self.subsumers: Dict[str, Set[str]] = {}
        self.successors: Dict[str, Set[Tuple[str, str]]] = defaultdict(set)
        self.predecessors: Dict[str, Set[Tuple[str, str]]] = defaultdict(set)
        self._queue = deque()
        self._role_closure = self._close_roles()

    def _close_roles(self) -> Dict[str, Set[str]]:
        closure: Dict[str, Set[str]] = {}
        roles = set(self.rules.role_subs) | self.rules.transitive
        for targets in self.rules.role_subs.values():
            roles |= targets
        for role in roles:
            seen = {role}
            pending = [role]
            while pending:
                current = pending.pop()
                for sup in self.rules.role_subs.get(current, ()):
                    if sup not in seen:
                        seen.add(sup)
                        pending.append(sup)
            closure[role] = seen | {TOP_OBJECT_PROPERTY}
        return closure

    def supers_of_role(self, role: str) -> Set[str]:
        return self._role_closure.get(role, {role, TOP_OBJECT_PROPERTY})

    def element(self, concept: str):
        if concept not in self.subsumers:
            self.subsumers[concept] = set()
            self._assign(concept, concept)
            self._assign(concept, THING)

    def _assign(self, element: str, concept: str):
        if concept not in self.subsumers[element]:
            self.subsumers[element].add(concept)
            self._queue.append((element, concept))

    def _link(self, role: str, source: str, target: str):
        for sup in self.supers_of_role(role):
            if (sup, target) not in self.successors[source]:
                self.successors[source].add((sup, target))
                self.predecessors[target].add((sup, source))
                self._queue.append((sup, source, target))

    def run(self):
        rules = self.rules
        while self._queue:
            item = self._queue.popleft()
            if len(item) == 2:
                element, concept = item
                for sup in rules.told.get(concept, ()):
                    self._assign(element, sup)
                for parts, result in rules.conjunctions.get(concept, ()):
                    if parts <= self.subsumers[element]:
                        self._assign(element, result)
                for role, filler in rules.exists_rhs.get(concept, ()):
                    self.element(filler)
                    self._link(role, element, filler)
                for role, source in list(self.predecessors.get(element, ())):
                    for result in rules.exists_lhs.get((role, concept), ()):
                        self._assign(source, result)
                    if concept == NOTHING:
                        self._assign(source, NOTHING)
            else:
                role, source, target = item
                for concept in list(self.subsumers[target]):
                    for result in rules.exists_lhs.get((role, concept), ()):
                        self._assign(source, result)
                if NOTHING in self.subsumers[target]:
                    self._assign(source, NOTHING)
                if role in rules.transitive:
                    for next_role, beyond in list(self.successors.get(target, ())):
                        if next_role == role:
                            self._link(role, source, beyond)
                    for prev_role, before in list(self.predecessors.get(source, ())):
                        if prev_role == role:
                            self._link(role, before, target)


class ELReasoner(ReasonerBackend):
    """Pure-Python OWL 2 EL classifier."""

    name = "EL"
    profile = "OWL 2 EL"

    def check_profile(self, axiom: Axiom):
        if not isinstance(axiom, EL_AXIOMS):
            raise UnsupportedProfileError(
                f"{type(axiom).__name__} axioms are not part of {self.profile}")
        _Normaliser().add(axiom)

    def classify(self, ontology_iri: str, axioms: Iterable[Axiom],
                 queries: Optional[Mapping[str, ClassExpression]] = None) -> Taxonomy:
        queries = queries or {}
        rules = _Normaliser()
        classes: Dict[str, None] = {}
        individuals: Dict[str, None] = {}
        properties: Dict[str, None] = {}

        for axiom in axioms:
            for entity in sorted(axiom.signature(), key=lambda e: e.iri):
                if entity.kind is EntityKind.CLASS:
                    classes.setdefault(entity.iri, None)
                elif entity.kind is EntityKind.INDIVIDUAL:
                    individuals.setdefault(entity.iri, None)
                elif entity.kind is EntityKind.OBJECT_PROPERTY:
                    properties.setdefault(entity.iri, None)
            if isinstance(axiom, (Declaration,) + IGNORED_AXIOMS):
                continue
            try:
                rules.add(axiom)
            except UnsupportedProfileError as e:
                self.logger.warning(f"Ignoring axiom outside {self.profile}: {e}")

        for query_iri, expression in queries.items():
            for entity in expression.signature():
                if entity.kind is EntityKind.INDIVIDUAL:
                    individuals.setdefault(entity.iri, None)
            name = rules.name(expression)
            rules.sub_class(query_iri, name)
            rules.sub_class(name, query_iri)
            classes.setdefault(query_iri, None)

        saturation = _Saturation(rules)
        for iri in list(classes) + [THING]:
            saturation.element(iri)
        for iri in individuals:
            saturation.element(nominal(iri))
        saturation.run()

        inconsistent = NOTHING in saturation.subsumers[THING] or any(
            NOTHING in saturation.subsumers[nominal(iri)] for iri in individuals)
        if inconsistent:
            raise InconsistentOntologyError(ontology_iri)

        named = set(classes) | {THING, NOTHING}
        subsumers = {iri: saturation.subsumers[iri] & named for iri in classes}
        types = {}
        for iri in individuals:
            found = saturation.subsumers[nominal(iri)]
            types[iri] = found & named
        relations: Dict[str, Set[Tuple[str, str]]] = defaultdict(set)
        for iri in individuals:
            for role, target in saturation.successors.get(nominal(iri), ()):
                if target.startswith("{") and role in properties:
                    relations[role].add((iri, target[1:-1]))
        # equal nominals share their edges
        for iri in individuals:
            same = [other for other in individuals
                    if other != iri and nominal(other) in saturation.subsumers[nominal(iri)]]
            for role in list(relations):
                for subject, target in list(relations[role]):
                    if subject in same:
                        relations[role].add((iri, target))
                    if target in same:
                        relations[role].add((subject, iri))

        self.logger.debug(f"Saturated {len(saturation.subsumers)} elements for {ontology_iri}")
        return Taxonomy(list(classes), subsumers, types, dict(relations))
