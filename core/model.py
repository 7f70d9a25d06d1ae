"""
OWL 2 data model for ontolite.

Entities, class expressions, data ranges and axioms are frozen dataclasses, so
equality and hashing are structural: two axioms built from the same parts are
the same axiom regardless of how or where they were constructed. N-ary
operands are stored as frozensets.

The module also holds the mutable session-side structures: the ontology
handle, the short-name signature map and the prefix registry.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

OWL_NS = "http://www.w3.org/2002/07/owl#"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

THING = OWL_NS + "Thing"
NOTHING = OWL_NS + "Nothing"
TOP_OBJECT_PROPERTY = OWL_NS + "topObjectProperty"
BOTTOM_OBJECT_PROPERTY = OWL_NS + "bottomObjectProperty"
TOP_DATA_PROPERTY = OWL_NS + "topDataProperty"
BOTTOM_DATA_PROPERTY = OWL_NS + "bottomDataProperty"
RDFS_LITERAL = RDFS_NS + "Literal"
XSD_STRING = XSD_NS + "string"

BUILTIN_IRIS = frozenset([
    THING, NOTHING, TOP_OBJECT_PROPERTY, BOTTOM_OBJECT_PROPERTY,
    TOP_DATA_PROPERTY, BOTTOM_DATA_PROPERTY, RDFS_LITERAL,
])

XSD_DATATYPES = (
    "string", "boolean", "decimal", "integer", "int", "long", "short", "byte",
    "double", "float", "nonNegativeInteger", "positiveInteger",
    "negativeInteger", "nonPositiveInteger", "unsignedInt", "unsignedLong",
    "dateTime", "date", "time", "anyURI", "normalizedString", "token",
)


def is_builtin(iri: str) -> bool:
    return iri in BUILTIN_IRIS or iri.startswith(XSD_NS)


class EntityKind(Enum):
    """Kinds of named entities a short name may denote."""
    CLASS = "Class"
    OBJECT_PROPERTY = "ObjectProperty"
    DATA_PROPERTY = "DataProperty"
    INDIVIDUAL = "Individual"
    DATATYPE = "Datatype"


class OWLObject:
    """Common base for every model object."""

    def signature(self) -> Set["Entity"]:
        """Named entities occurring anywhere in this object."""
        found: Set[Entity] = set()
        _collect_entities(self, found)
        return found


def _collect_entities(value, found: Set["Entity"]):
    if isinstance(value, Entity):
        found.add(value)
    elif isinstance(value, OWLObject):
        for f in fields(value):
            _collect_entities(getattr(value, f.name), found)
    elif isinstance(value, (frozenset, tuple, list)):
        for item in value:
            _collect_entities(item, found)


# =============================================================================
# Entities and literals
# =============================================================================

class Entity(OWLObject):
    iri: str
    kind: EntityKind

    @property
    def is_builtin(self) -> bool:
        return is_builtin(self.iri)


class ClassExpression(OWLObject):
    pass


class ObjectPropertyExpression(OWLObject):
    pass


class DataRange(OWLObject):
    pass


@dataclass(frozen=True)
class OWLClass(Entity, ClassExpression):
    iri: str
    kind = EntityKind.CLASS

    @property
    def is_thing(self) -> bool:
        return self.iri == THING

    @property
    def is_nothing(self) -> bool:
        return self.iri == NOTHING


@dataclass(frozen=True)
class ObjectProperty(Entity, ObjectPropertyExpression):
    iri: str
    kind = EntityKind.OBJECT_PROPERTY

    @property
    def named_property(self) -> "ObjectProperty":
        return self


@dataclass(frozen=True)
class ObjectInverseOf(ObjectPropertyExpression):
    property: ObjectProperty

    @property
    def named_property(self) -> ObjectProperty:
        return self.property


@dataclass(frozen=True)
class DataProperty(Entity):
    iri: str
    kind = EntityKind.DATA_PROPERTY


@dataclass(frozen=True)
class Individual(Entity):
    iri: str
    kind = EntityKind.INDIVIDUAL


@dataclass(frozen=True)
class Datatype(Entity, DataRange):
    iri: str
    kind = EntityKind.DATATYPE


@dataclass(frozen=True)
class Literal(OWLObject):
    lexical: str
    datatype: str = XSD_STRING
    lang: Optional[str] = None


ENTITY_TYPES = {
    EntityKind.CLASS: OWLClass,
    EntityKind.OBJECT_PROPERTY: ObjectProperty,
    EntityKind.DATA_PROPERTY: DataProperty,
    EntityKind.INDIVIDUAL: Individual,
    EntityKind.DATATYPE: Datatype,
}


def make_entity(kind: EntityKind, iri: str) -> Entity:
    return ENTITY_TYPES[kind](iri)


THING_CLASS = OWLClass(THING)
NOTHING_CLASS = OWLClass(NOTHING)
LITERAL_TYPE = Datatype(RDFS_LITERAL)


# =============================================================================
# Data ranges
# =============================================================================

@dataclass(frozen=True)
class DatatypeRestriction(DataRange):
    datatype: Datatype
    facets: Tuple[Tuple[str, Literal], ...]


@dataclass(frozen=True)
class DataOneOf(DataRange):
    values: FrozenSet[Literal]


# =============================================================================
# Class expressions
# =============================================================================

@dataclass(frozen=True)
class ObjectIntersectionOf(ClassExpression):
    operands: FrozenSet[ClassExpression]


@dataclass(frozen=True)
class ObjectUnionOf(ClassExpression):
    operands: FrozenSet[ClassExpression]


@dataclass(frozen=True)
class ObjectComplementOf(ClassExpression):
    operand: ClassExpression


@dataclass(frozen=True)
class ObjectOneOf(ClassExpression):
    individuals: FrozenSet[Individual]


@dataclass(frozen=True)
class ObjectSomeValuesFrom(ClassExpression):
    property: ObjectPropertyExpression
    filler: ClassExpression


@dataclass(frozen=True)
class ObjectAllValuesFrom(ClassExpression):
    property: ObjectPropertyExpression
    filler: ClassExpression


@dataclass(frozen=True)
class ObjectHasValue(ClassExpression):
    property: ObjectPropertyExpression
    value: Individual


@dataclass(frozen=True)
class ObjectHasSelf(ClassExpression):
    property: ObjectPropertyExpression


@dataclass(frozen=True)
class ObjectMinCardinality(ClassExpression):
    cardinality: int
    property: ObjectPropertyExpression
    filler: ClassExpression = THING_CLASS


@dataclass(frozen=True)
class ObjectMaxCardinality(ClassExpression):
    cardinality: int
    property: ObjectPropertyExpression
    filler: ClassExpression = THING_CLASS


@dataclass(frozen=True)
class ObjectExactCardinality(ClassExpression):
    cardinality: int
    property: ObjectPropertyExpression
    filler: ClassExpression = THING_CLASS


@dataclass(frozen=True)
class DataSomeValuesFrom(ClassExpression):
    property: DataProperty
    filler: DataRange


@dataclass(frozen=True)
class DataAllValuesFrom(ClassExpression):
    property: DataProperty
    filler: DataRange


@dataclass(frozen=True)
class DataHasValue(ClassExpression):
    property: DataProperty
    value: Literal


@dataclass(frozen=True)
class DataMinCardinality(ClassExpression):
    cardinality: int
    property: DataProperty
    filler: DataRange = LITERAL_TYPE


@dataclass(frozen=True)
class DataMaxCardinality(ClassExpression):
    cardinality: int
    property: DataProperty
    filler: DataRange = LITERAL_TYPE


@dataclass(frozen=True)
class DataExactCardinality(ClassExpression):
    cardinality: int
    property: DataProperty
    filler: DataRange = LITERAL_TYPE


OBJECT_CARDINALITIES = (ObjectMinCardinality, ObjectMaxCardinality, ObjectExactCardinality)
DATA_CARDINALITIES = (DataMinCardinality, DataMaxCardinality, DataExactCardinality)


def intersection_of(*operands: ClassExpression) -> ClassExpression:
    ops = frozenset(operands)
    return next(iter(ops)) if len(ops) == 1 else ObjectIntersectionOf(ops)


# =============================================================================
# Axioms
# =============================================================================

class Axiom(OWLObject):
    """Base class of all axioms."""

    @property
    def is_logical(self) -> bool:
        return True


@dataclass(frozen=True)
class Declaration(Axiom):
    entity: Entity

    @property
    def is_logical(self) -> bool:
        return False


@dataclass(frozen=True)
class SubClassOf(Axiom):
    sub_class: ClassExpression
    super_class: ClassExpression


@dataclass(frozen=True)
class EquivalentClasses(Axiom):
    operands: FrozenSet[ClassExpression]


@dataclass(frozen=True)
class DisjointClasses(Axiom):
    operands: FrozenSet[ClassExpression]


@dataclass(frozen=True)
class ClassAssertion(Axiom):
    class_expression: ClassExpression
    individual: Individual


@dataclass(frozen=True)
class ObjectPropertyAssertion(Axiom):
    property: ObjectProperty
    subject: Individual
    object: Individual


@dataclass(frozen=True)
class DataPropertyAssertion(Axiom):
    property: DataProperty
    subject: Individual
    value: Literal


@dataclass(frozen=True)
class SameIndividual(Axiom):
    individuals: FrozenSet[Individual]


@dataclass(frozen=True)
class DifferentIndividuals(Axiom):
    individuals: FrozenSet[Individual]


@dataclass(frozen=True)
class SubObjectPropertyOf(Axiom):
    sub_property: ObjectPropertyExpression
    super_property: ObjectPropertyExpression


@dataclass(frozen=True)
class EquivalentObjectProperties(Axiom):
    operands: FrozenSet[ObjectPropertyExpression]


@dataclass(frozen=True)
class InverseObjectProperties(Axiom):
    first: ObjectProperty
    second: ObjectProperty


@dataclass(frozen=True)
class ObjectPropertyDomain(Axiom):
    property: ObjectPropertyExpression
    domain: ClassExpression


@dataclass(frozen=True)
class ObjectPropertyRange(Axiom):
    property: ObjectPropertyExpression
    range: ClassExpression


@dataclass(frozen=True)
class SubDataPropertyOf(Axiom):
    sub_property: DataProperty
    super_property: DataProperty


@dataclass(frozen=True)
class DataPropertyDomain(Axiom):
    property: DataProperty
    domain: ClassExpression


@dataclass(frozen=True)
class DataPropertyRange(Axiom):
    property: DataProperty
    range: DataRange


class ObjectPropertyCharacteristic(Axiom):
    """Single-property characteristic axiom (Functional, Transitive, ...)."""
    property: ObjectPropertyExpression
    characteristic: str


@dataclass(frozen=True)
class FunctionalObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Functional"


@dataclass(frozen=True)
class InverseFunctionalObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "InverseFunctional"


@dataclass(frozen=True)
class TransitiveObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Transitive"


@dataclass(frozen=True)
class SymmetricObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Symmetric"


@dataclass(frozen=True)
class AsymmetricObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Asymmetric"


@dataclass(frozen=True)
class ReflexiveObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Reflexive"


@dataclass(frozen=True)
class IrreflexiveObjectProperty(ObjectPropertyCharacteristic):
    property: ObjectPropertyExpression
    characteristic = "Irreflexive"


@dataclass(frozen=True)
class FunctionalDataProperty(Axiom):
    property: DataProperty


CHARACTERISTICS = {
    cls.characteristic.lower(): cls for cls in (
        FunctionalObjectProperty, InverseFunctionalObjectProperty,
        TransitiveObjectProperty, SymmetricObjectProperty,
        AsymmetricObjectProperty, ReflexiveObjectProperty,
        IrreflexiveObjectProperty,
    )
}


# =============================================================================
# Ontology handle
# =============================================================================

class Ontology:
    """
    Mutable ontology handle: a base IRI plus an insertion-ordered axiom set.

    Every successful mutation bumps ``revision``; reasoner bindings compare it
    against the revision they last classified to decide whether to flush.
    """

    def __init__(self, iri: str, axioms: Iterable[Axiom] = ()):
        self.iri = iri
        self._axioms: Dict[Axiom, None] = {}
        self.revision = 0
        self.add_axioms(axioms)

    def __repr__(self):
        return f"Ontology(<{self.iri}>, {len(self._axioms)} axioms)"

    def __contains__(self, axiom: Axiom) -> bool:
        return axiom in self._axioms

    def __iter__(self) -> Iterator[Axiom]:
        return iter(list(self._axioms))

    def __len__(self) -> int:
        return len(self._axioms)

    def add_axiom(self, axiom: Axiom) -> bool:
        """Add an axiom; returns False when a structurally equal one exists."""
        if axiom in self._axioms:
            return False
        self._axioms[axiom] = None
        self.revision += 1
        return True

    def add_axioms(self, axioms: Iterable[Axiom]) -> int:
        return sum(1 for axiom in axioms if self.add_axiom(axiom))

    def remove_axiom(self, axiom: Axiom) -> bool:
        if axiom not in self._axioms:
            return False
        del self._axioms[axiom]
        self.revision += 1
        return True

    @property
    def axioms(self) -> List[Axiom]:
        return list(self._axioms)

    @property
    def axiom_count(self) -> int:
        return len(self._axioms)

    def logical_axioms(self) -> List[Axiom]:
        return [axiom for axiom in self._axioms if axiom.is_logical]

    def declarations(self) -> List[Declaration]:
        return [axiom for axiom in self._axioms if isinstance(axiom, Declaration)]

    def entities(self, kind: Optional[EntityKind] = None) -> List[Entity]:
        """Non built-in entities in order of first appearance."""
        seen: Dict[Entity, None] = {}
        for axiom in self._axioms:
            # declarations first, so declared entities keep declaration order
            if isinstance(axiom, Declaration):
                seen.setdefault(axiom.entity, None)
        for axiom in self._axioms:
            for entity in sorted(axiom.signature(), key=lambda e: e.iri):
                seen.setdefault(entity, None)
        return [e for e in seen
                if not e.is_builtin and (kind is None or e.kind is kind)]

    def classes(self) -> List[OWLClass]:
        return self.entities(EntityKind.CLASS)

    def object_properties(self) -> List[ObjectProperty]:
        return self.entities(EntityKind.OBJECT_PROPERTY)

    def data_properties(self) -> List[DataProperty]:
        return self.entities(EntityKind.DATA_PROPERTY)

    def individuals(self) -> List[Individual]:
        return self.entities(EntityKind.INDIVIDUAL)

    def is_declared(self, entity: Entity) -> bool:
        return Declaration(entity) in self._axioms


# =============================================================================
# Short-name signature and prefixes
# =============================================================================

class Signature:
    """Short name -> entity kind -> IRI."""

    def __init__(self):
        self._entries: Dict[str, Dict[EntityKind, str]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return sum(len(kinds) for kinds in self._entries.values())

    def declare(self, name: str, kind: EntityKind, iri: str) -> bool:
        kinds = self._entries.setdefault(name, {})
        if kind in kinds:
            return False
        kinds[kind] = iri
        return True

    def lookup(self, name: str, kind: EntityKind) -> Optional[str]:
        return self._entries.get(name, {}).get(kind)

    def kinds(self, name: str) -> List[EntityKind]:
        return list(self._entries.get(name, {}))

    def clear(self):
        self._entries.clear()

    @classmethod
    def from_ontology(cls, ontology: Ontology) -> "Signature":
        """Rebuild the map from the declarations under the ontology's base IRI."""
        signature = cls()
        base = base_stem(ontology.iri)
        for declaration in ontology.declarations():
            entity = declaration.entity
            if entity.iri.startswith(base) and len(entity.iri) > len(base):
                signature.declare(entity.iri[len(base):], entity.kind, entity.iri)
        logger.debug(f"Rebuilt signature with {len(signature)} entries from {ontology.iri}")
        return signature


def base_stem(iri: str) -> str:
    """The IRI stem short names are appended to."""
    return iri if iri.endswith(("#", "/")) else iri + "#"


class PrefixRegistry:
    """Prefix label -> IRI stem; the empty label is the ontology base."""

    DEFAULTS = {
        "owl": OWL_NS,
        "rdf": RDF_NS,
        "rdfs": RDFS_NS,
        "xsd": XSD_NS,
    }

    def __init__(self, base_iri: Optional[str] = None):
        self._prefixes: Dict[str, str] = dict(self.DEFAULTS)
        if base_iri:
            self.set_base(base_iri)

    def set_base(self, base_iri: str):
        self._prefixes[""] = base_stem(base_iri)

    @property
    def base(self) -> Optional[str]:
        return self._prefixes.get("")

    def bind(self, label: str, stem: str):
        self._prefixes[label] = stem

    def expand(self, label: str) -> Optional[str]:
        return self._prefixes.get(label)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._prefixes.items())

    def shorten(self, iri: str) -> Optional[Tuple[str, str]]:
        """Return (label, local name) for the longest matching stem; the base wins ties."""
        best = None
        for label, stem in self._prefixes.items():
            if iri.startswith(stem) and len(iri) > len(stem):
                if best is None or len(stem) > len(self._prefixes[best]) or (
                        label == "" and len(stem) == len(self._prefixes[best])):
                    best = label
        if best is None:
            return None
        return best, iri[len(self._prefixes[best]):]
