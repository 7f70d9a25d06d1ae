"""
OWL 2 to RDF mapping.

Converts between ontology axioms and rdflib graphs following the standard
OWL 2 RDF mapping: class expressions and data ranges become blank-node
structures, n-ary operands become RDF lists, and every entity gets an
explicit declaration triple.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rdflib import BNode, Graph, Literal as RDFLiteral, Namespace, URIRef
from rdflib.collection import Collection
from rdflib.namespace import OWL, RDF, RDFS, XSD

from core.model import (
    RDFS_LITERAL, THING, XSD_NS, XSD_STRING,
    Axiom, ClassAssertion, ClassExpression, DataAllValuesFrom, DataExactCardinality,
    DataHasValue, DataMaxCardinality, DataMinCardinality, DataOneOf, DataProperty,
    DataPropertyAssertion, DataPropertyDomain, DataPropertyRange, DataRange,
    DataSomeValuesFrom, Datatype, DatatypeRestriction, Declaration, DifferentIndividuals,
    DisjointClasses, EntityKind, EquivalentClasses, EquivalentObjectProperties,
    FunctionalDataProperty, Individual, InverseObjectProperties, Literal, ObjectAllValuesFrom,
    ObjectComplementOf, ObjectExactCardinality, ObjectHasSelf, ObjectHasValue,
    ObjectIntersectionOf, ObjectInverseOf, ObjectMaxCardinality, ObjectMinCardinality,
    ObjectOneOf, ObjectProperty, ObjectPropertyAssertion, ObjectPropertyCharacteristic,
    ObjectPropertyDomain, ObjectPropertyRange, ObjectSomeValuesFrom, ObjectUnionOf, OWLClass,
    Ontology, SameIndividual, SubClassOf, SubDataPropertyOf, SubObjectPropertyOf,
    CHARACTERISTICS, make_entity,
)

logger = logging.getLogger(__name__)

DECLARATION_TYPES = {
    EntityKind.CLASS: OWL.Class,
    EntityKind.OBJECT_PROPERTY: OWL.ObjectProperty,
    EntityKind.DATA_PROPERTY: OWL.DatatypeProperty,
    EntityKind.INDIVIDUAL: OWL.NamedIndividual,
    EntityKind.DATATYPE: RDFS.Datatype,
}

CHARACTERISTIC_TYPES = {
    "Functional": OWL.FunctionalProperty,
    "InverseFunctional": OWL.InverseFunctionalProperty,
    "Transitive": OWL.TransitiveProperty,
    "Symmetric": OWL.SymmetricProperty,
    "Asymmetric": OWL.AsymmetricProperty,
    "Reflexive": OWL.ReflexiveProperty,
    "Irreflexive": OWL.IrreflexiveProperty,
}
TYPE_CHARACTERISTICS = {rdf_type: name for name, rdf_type in CHARACTERISTIC_TYPES.items()}

# (object class, data class, qualified predicate, unqualified predicate)
CARDINALITIES = (
    (ObjectMinCardinality, DataMinCardinality, OWL.minQualifiedCardinality, OWL.minCardinality),
    (ObjectMaxCardinality, DataMaxCardinality, OWL.maxQualifiedCardinality, OWL.maxCardinality),
    (ObjectExactCardinality, DataExactCardinality, OWL.qualifiedCardinality, OWL.cardinality),
)

STRUCTURAL_TYPES = {
    OWL.Ontology, OWL.Restriction, OWL.AllDisjointClasses, OWL.AllDifferent,
    OWL.AnnotationProperty, OWL.Class, OWL.ObjectProperty, OWL.DatatypeProperty,
    OWL.NamedIndividual, RDFS.Datatype, RDFS.Class, RDF.Property,
}


class UnsupportedConstruct(Exception):
    """An RDF structure with no counterpart in the axiom model."""
    pass


class OntologyGraphWriter:
    """Builds an rdflib Graph from an ontology's axioms."""

    def __init__(self, prefixes: Optional[Iterable[Tuple[str, str]]] = None):
        self.prefixes = list(prefixes or [])

    def write(self, ontology_iri: str, axioms: Iterable[Axiom]) -> Graph:
        self.graph = Graph()
        self.graph.bind("owl", OWL)
        for label, stem in self.prefixes:
            if label and label not in ("owl", "rdf", "rdfs", "xsd"):
                self.graph.bind(label, Namespace(stem))
        self.graph.add((URIRef(ontology_iri), RDF.type, OWL.Ontology))
        for axiom in axioms:
            self._axiom(axiom)
        return self.graph

    # -- structures -----------------------------------------------------------

    def _list(self, nodes: List) -> BNode:
        head = BNode()
        Collection(self.graph, head, nodes)
        return head

    def _literal(self, literal: Literal) -> RDFLiteral:
        if literal.lang:
            return RDFLiteral(literal.lexical, lang=literal.lang)
        if literal.datatype == XSD_STRING:
            return RDFLiteral(literal.lexical)
        return RDFLiteral(literal.lexical, datatype=URIRef(literal.datatype))

    def _property(self, prop) -> URIRef:
        if isinstance(prop, ObjectInverseOf):
            node = BNode()
            self.graph.add((node, OWL.inverseOf, URIRef(prop.property.iri)))
            return node
        return URIRef(prop.iri)

    def _sorted(self, operands) -> List:
        return sorted(operands, key=repr)

    def _class(self, ce: ClassExpression):
        g = self.graph
        if isinstance(ce, OWLClass):
            return URIRef(ce.iri)
        node = BNode()
        if isinstance(ce, (ObjectIntersectionOf, ObjectUnionOf)):
            predicate = OWL.intersectionOf if isinstance(ce, ObjectIntersectionOf) else OWL.unionOf
            g.add((node, RDF.type, OWL.Class))
            g.add((node, predicate, self._list([self._class(op) for op in self._sorted(ce.operands)])))
            return node
        if isinstance(ce, ObjectComplementOf):
            g.add((node, RDF.type, OWL.Class))
            g.add((node, OWL.complementOf, self._class(ce.operand)))
            return node
        if isinstance(ce, ObjectOneOf):
            g.add((node, RDF.type, OWL.Class))
            g.add((node, OWL.oneOf, self._list([URIRef(i.iri) for i in self._sorted(ce.individuals)])))
            return node

        g.add((node, RDF.type, OWL.Restriction))
        g.add((node, OWL.onProperty, self._property(ce.property)))
        if isinstance(ce, ObjectSomeValuesFrom):
            g.add((node, OWL.someValuesFrom, self._class(ce.filler)))
        elif isinstance(ce, ObjectAllValuesFrom):
            g.add((node, OWL.allValuesFrom, self._class(ce.filler)))
        elif isinstance(ce, ObjectHasValue):
            g.add((node, OWL.hasValue, URIRef(ce.value.iri)))
        elif isinstance(ce, ObjectHasSelf):
            g.add((node, OWL.hasSelf, RDFLiteral("true", datatype=XSD.boolean)))
        elif isinstance(ce, DataSomeValuesFrom):
            g.add((node, OWL.someValuesFrom, self._data_range(ce.filler)))
        elif isinstance(ce, DataAllValuesFrom):
            g.add((node, OWL.allValuesFrom, self._data_range(ce.filler)))
        elif isinstance(ce, DataHasValue):
            g.add((node, OWL.hasValue, self._literal(ce.value)))
        else:
            for object_cls, data_cls, qualified, unqualified in CARDINALITIES:
                if isinstance(ce, (object_cls, data_cls)):
                    count = RDFLiteral(str(ce.cardinality), datatype=XSD.nonNegativeInteger)
                    filler = ce.filler
                    filler_iri = filler.iri if isinstance(filler, (OWLClass, Datatype)) else None
                    if filler_iri in (THING, RDFS_LITERAL):
                        g.add((node, unqualified, count))
                    elif isinstance(ce, object_cls):
                        g.add((node, qualified, count))
                        g.add((node, OWL.onClass, self._class(filler)))
                    else:
                        g.add((node, qualified, count))
                        g.add((node, OWL.onDataRange, self._data_range(filler)))
                    break
            else:
                raise UnsupportedConstruct(f"Cannot map {type(ce).__name__} to RDF")
        return node

    def _data_range(self, dr: DataRange):
        g = self.graph
        if isinstance(dr, Datatype):
            return URIRef(dr.iri)
        node = BNode()
        g.add((node, RDF.type, RDFS.Datatype))
        if isinstance(dr, DatatypeRestriction):
            g.add((node, OWL.onDatatype, URIRef(dr.datatype.iri)))
            facets = []
            for facet, value in dr.facets:
                facet_node = BNode()
                g.add((facet_node, URIRef(facet), self._literal(value)))
                facets.append(facet_node)
            g.add((node, OWL.withRestrictions, self._list(facets)))
        elif isinstance(dr, DataOneOf):
            values = sorted(dr.values, key=repr)
            g.add((node, OWL.oneOf, self._list([self._literal(v) for v in values])))
        else:
            raise UnsupportedConstruct(f"Cannot map {type(dr).__name__} to RDF")
        return node

    # -- axioms ---------------------------------------------------------------

    def _axiom(self, axiom: Axiom):
        g = self.graph
        if isinstance(axiom, Declaration):
            g.add((URIRef(axiom.entity.iri), RDF.type, DECLARATION_TYPES[axiom.entity.kind]))
        elif isinstance(axiom, SubClassOf):
            g.add((self._class(axiom.sub_class), RDFS.subClassOf, self._class(axiom.super_class)))
        elif isinstance(axiom, EquivalentClasses):
            operands = self._sorted(axiom.operands)
            first = self._class(operands[0])
            for other in operands[1:]:
                g.add((first, OWL.equivalentClass, self._class(other)))
        elif isinstance(axiom, DisjointClasses):
            operands = self._sorted(axiom.operands)
            if len(operands) == 2:
                g.add((self._class(operands[0]), OWL.disjointWith, self._class(operands[1])))
            else:
                node = BNode()
                g.add((node, RDF.type, OWL.AllDisjointClasses))
                g.add((node, OWL.members, self._list([self._class(op) for op in operands])))
        elif isinstance(axiom, ClassAssertion):
            g.add((URIRef(axiom.individual.iri), RDF.type, self._class(axiom.class_expression)))
        elif isinstance(axiom, ObjectPropertyAssertion):
            g.add((URIRef(axiom.subject.iri), URIRef(axiom.property.iri), URIRef(axiom.object.iri)))
        elif isinstance(axiom, DataPropertyAssertion):
            g.add((URIRef(axiom.subject.iri), URIRef(axiom.property.iri), self._literal(axiom.value)))
        elif isinstance(axiom, SameIndividual):
            individuals = self._sorted(axiom.individuals)
            for other in individuals[1:]:
                g.add((URIRef(individuals[0].iri), OWL.sameAs, URIRef(other.iri)))
        elif isinstance(axiom, DifferentIndividuals):
            individuals = [URIRef(i.iri) for i in self._sorted(axiom.individuals)]
            if len(individuals) == 2:
                g.add((individuals[0], OWL.differentFrom, individuals[1]))
            else:
                node = BNode()
                g.add((node, RDF.type, OWL.AllDifferent))
                g.add((node, OWL.distinctMembers, self._list(individuals)))
        elif isinstance(axiom, (SubObjectPropertyOf, SubDataPropertyOf)):
            g.add((self._property(axiom.sub_property), RDFS.subPropertyOf,
                   self._property(axiom.super_property)))
        elif isinstance(axiom, EquivalentObjectProperties):
            operands = self._sorted(axiom.operands)
            for other in operands[1:]:
                g.add((self._property(operands[0]), OWL.equivalentProperty, self._property(other)))
        elif isinstance(axiom, InverseObjectProperties):
            g.add((URIRef(axiom.first.iri), OWL.inverseOf, URIRef(axiom.second.iri)))
        elif isinstance(axiom, (ObjectPropertyDomain, DataPropertyDomain)):
            g.add((self._property(axiom.property), RDFS.domain, self._class(axiom.domain)))
        elif isinstance(axiom, ObjectPropertyRange):
            g.add((self._property(axiom.property), RDFS.range, self._class(axiom.range)))
        elif isinstance(axiom, DataPropertyRange):
            g.add((URIRef(axiom.property.iri), RDFS.range, self._data_range(axiom.range)))
        elif isinstance(axiom, ObjectPropertyCharacteristic):
            g.add((self._property(axiom.property), RDF.type,
                   CHARACTERISTIC_TYPES[axiom.characteristic]))
        elif isinstance(axiom, FunctionalDataProperty):
            g.add((URIRef(axiom.property.iri), RDF.type, OWL.FunctionalProperty))
        else:
            raise UnsupportedConstruct(f"Cannot map {type(axiom).__name__} to RDF")


class OntologyGraphReader:
    """Recovers axioms from an rdflib Graph written with the OWL 2 RDF mapping."""

    def read(self, graph: Graph, default_iri: Optional[str] = None) -> Ontology:
        self.graph = graph
        ontology_iri = next((str(s) for s in sorted(graph.subjects(RDF.type, OWL.Ontology), key=str)
                             if isinstance(s, URIRef)), default_iri)
        if ontology_iri is None:
            raise UnsupportedConstruct("The document declares no ontology IRI")

        self.kinds: Dict[EntityKind, Set[URIRef]] = {}
        for kind, rdf_type in DECLARATION_TYPES.items():
            self.kinds[kind] = {s for s in graph.subjects(RDF.type, rdf_type) if isinstance(s, URIRef)}
        for rdf_type in CHARACTERISTIC_TYPES.values():
            for subject in graph.subjects(RDF.type, rdf_type):
                if isinstance(subject, URIRef) and subject not in self.kinds[EntityKind.DATA_PROPERTY]:
                    self.kinds[EntityKind.OBJECT_PROPERTY].add(subject)

        axioms: List[Axiom] = []
        for kind, subjects in self.kinds.items():
            for subject in sorted(subjects, key=str):
                if (subject, RDF.type, DECLARATION_TYPES[kind]) in graph:
                    axioms.append(Declaration(make_entity(kind, str(subject))))

        skipped = 0
        for triple in sorted(graph, key=lambda t: (str(t[0]), str(t[1]), str(t[2]))):
            try:
                axiom = self._axiom(*triple)
            except UnsupportedConstruct as e:
                skipped += 1
                logger.debug(f"Skipping triple {triple}: {e}")
                continue
            if axiom is not None:
                axioms.append(axiom)
        if skipped:
            logger.warning(f"Skipped {skipped} triples with no axiom counterpart in {ontology_iri}")

        ontology = Ontology(ontology_iri, axioms)
        ontology.revision = 0
        return ontology

    def prefixes(self, graph: Graph) -> List[Tuple[str, str]]:
        return [(label, str(namespace)) for label, namespace in graph.namespaces()]

    # -- helpers --------------------------------------------------------------

    def _is(self, node, kind: EntityKind) -> bool:
        return node in self.kinds[kind]

    def _items(self, node) -> List:
        return list(Collection(self.graph, node))

    def _literal(self, node) -> Literal:
        if not isinstance(node, RDFLiteral):
            raise UnsupportedConstruct(f"Expected a literal, found {node}")
        if node.language:
            return Literal(str(node), XSD_STRING, node.language)
        if node.datatype is not None:
            return Literal(str(node), str(node.datatype))
        return Literal(str(node))

    def _object_property(self, node):
        if isinstance(node, BNode):
            inverse = self.graph.value(node, OWL.inverseOf)
            if inverse is None:
                raise UnsupportedConstruct("Anonymous property without owl:inverseOf")
            return ObjectInverseOf(ObjectProperty(str(inverse)))
        return ObjectProperty(str(node))

    def _is_data_range(self, node) -> bool:
        if isinstance(node, URIRef):
            return (str(node).startswith(XSD_NS) or str(node) == RDFS_LITERAL
                    or self._is(node, EntityKind.DATATYPE))
        return (node, RDF.type, RDFS.Datatype) in self.graph

    def _data_restriction(self, node, prop) -> bool:
        if self._is(prop, EntityKind.DATA_PROPERTY):
            return True
        if self._is(prop, EntityKind.OBJECT_PROPERTY) or isinstance(prop, BNode):
            return False
        g = self.graph
        value = g.value(node, OWL.hasValue)
        if value is not None:
            return isinstance(value, RDFLiteral)
        for predicate in (OWL.someValuesFrom, OWL.allValuesFrom, OWL.onDataRange):
            filler = g.value(node, predicate)
            if filler is not None:
                return predicate == OWL.onDataRange or self._is_data_range(filler)
        return False

    def _class(self, node) -> ClassExpression:
        g = self.graph
        if isinstance(node, URIRef):
            return OWLClass(str(node))
        if isinstance(node, RDFLiteral):
            raise UnsupportedConstruct(f"Literal {node} used as a class")
        for predicate, cls in ((OWL.intersectionOf, ObjectIntersectionOf),
                               (OWL.unionOf, ObjectUnionOf)):
            members = g.value(node, predicate)
            if members is not None:
                return cls(frozenset(self._class(m) for m in self._items(members)))
        operand = g.value(node, OWL.complementOf)
        if operand is not None:
            return ObjectComplementOf(self._class(operand))
        members = g.value(node, OWL.oneOf)
        if members is not None:
            return ObjectOneOf(frozenset(Individual(str(m)) for m in self._items(members)))

        prop_node = g.value(node, OWL.onProperty)
        if prop_node is None:
            raise UnsupportedConstruct(f"Unrecognised class expression {node}")
        data = self._data_restriction(node, prop_node)
        prop = DataProperty(str(prop_node)) if data else self._object_property(prop_node)

        filler = g.value(node, OWL.someValuesFrom)
        if filler is not None:
            if data:
                return DataSomeValuesFrom(prop, self._data_range(filler))
            return ObjectSomeValuesFrom(prop, self._class(filler))
        filler = g.value(node, OWL.allValuesFrom)
        if filler is not None:
            if data:
                return DataAllValuesFrom(prop, self._data_range(filler))
            return ObjectAllValuesFrom(prop, self._class(filler))
        value = g.value(node, OWL.hasValue)
        if value is not None:
            if data:
                return DataHasValue(prop, self._literal(value))
            return ObjectHasValue(prop, Individual(str(value)))
        if g.value(node, OWL.hasSelf) is not None:
            return ObjectHasSelf(prop)
        for object_cls, data_cls, qualified, unqualified in CARDINALITIES:
            count = g.value(node, qualified)
            if count is None:
                count = g.value(node, unqualified)
                if count is None:
                    continue
                return (data_cls if data else object_cls)(int(str(count)), prop)
            if data:
                return data_cls(int(str(count)), prop, self._data_range(g.value(node, OWL.onDataRange)))
            return object_cls(int(str(count)), prop, self._class(g.value(node, OWL.onClass)))
        raise UnsupportedConstruct(f"Unrecognised restriction {node}")

    def _data_range(self, node) -> DataRange:
        g = self.graph
        if node is None:
            raise UnsupportedConstruct("Missing data range")
        if isinstance(node, URIRef):
            return Datatype(str(node))
        base = g.value(node, OWL.onDatatype)
        if base is not None:
            facets = []
            restrictions = g.value(node, OWL.withRestrictions)
            for facet_node in self._items(restrictions) if restrictions is not None else []:
                for facet, value in g.predicate_objects(facet_node):
                    facets.append((str(facet), self._literal(value)))
            return DatatypeRestriction(Datatype(str(base)), tuple(facets))
        members = g.value(node, OWL.oneOf)
        if members is not None:
            return DataOneOf(frozenset(self._literal(m) for m in self._items(members)))
        raise UnsupportedConstruct(f"Unrecognised data range {node}")

    def _axiom(self, s, p, o) -> Optional[Axiom]:
        g = self.graph
        if p == RDFS.subClassOf:
            return SubClassOf(self._class(s), self._class(o))
        if p == OWL.equivalentClass:
            return EquivalentClasses(frozenset([self._class(s), self._class(o)]))
        if p == OWL.disjointWith:
            return DisjointClasses(frozenset([self._class(s), self._class(o)]))

        if p == RDF.type:
            if o == OWL.AllDisjointClasses:
                members = g.value(s, OWL.members)
                return DisjointClasses(frozenset(self._class(m) for m in self._items(members)))
            if o == OWL.AllDifferent:
                members = g.value(s, OWL.distinctMembers) or g.value(s, OWL.members)
                return DifferentIndividuals(frozenset(Individual(str(m)) for m in self._items(members)))
            if isinstance(s, BNode) or o in STRUCTURAL_TYPES:
                return None
            if o in TYPE_CHARACTERISTICS:
                name = TYPE_CHARACTERISTICS[o]
                if self._is(s, EntityKind.DATA_PROPERTY):
                    if name != "Functional":
                        raise UnsupportedConstruct(f"{name} data property")
                    return FunctionalDataProperty(DataProperty(str(s)))
                return CHARACTERISTICS[name.lower()](ObjectProperty(str(s)))
            if self._is(s, EntityKind.CLASS) or self._is(s, EntityKind.OBJECT_PROPERTY) \
                    or self._is(s, EntityKind.DATA_PROPERTY):
                return None
            return ClassAssertion(self._class(o), Individual(str(s)))

        if isinstance(s, BNode):
            return None

        if p == RDFS.subPropertyOf:
            if self._is(s, EntityKind.DATA_PROPERTY):
                return SubDataPropertyOf(DataProperty(str(s)), DataProperty(str(o)))
            return SubObjectPropertyOf(self._object_property(s), self._object_property(o))
        if p == OWL.equivalentProperty:
            if self._is(s, EntityKind.DATA_PROPERTY):
                raise UnsupportedConstruct("Equivalent data properties")
            return EquivalentObjectProperties(
                frozenset([self._object_property(s), self._object_property(o)]))
        if p == OWL.inverseOf:
            return InverseObjectProperties(ObjectProperty(str(s)), ObjectProperty(str(o)))
        if p == RDFS.domain:
            if self._is(s, EntityKind.DATA_PROPERTY):
                return DataPropertyDomain(DataProperty(str(s)), self._class(o))
            return ObjectPropertyDomain(ObjectProperty(str(s)), self._class(o))
        if p == RDFS.range:
            if self._is(s, EntityKind.DATA_PROPERTY):
                return DataPropertyRange(DataProperty(str(s)), self._data_range(o))
            return ObjectPropertyRange(ObjectProperty(str(s)), self._class(o))
        if p == OWL.sameAs:
            return SameIndividual(frozenset([Individual(str(s)), Individual(str(o))]))
        if p == OWL.differentFrom:
            return DifferentIndividuals(frozenset([Individual(str(s)), Individual(str(o))]))
        if self._is(p, EntityKind.OBJECT_PROPERTY) and isinstance(o, URIRef):
            return ObjectPropertyAssertion(ObjectProperty(str(p)), Individual(str(s)), Individual(str(o)))
        if self._is(p, EntityKind.DATA_PROPERTY) and isinstance(o, RDFLiteral):
            return DataPropertyAssertion(DataProperty(str(p)), Individual(str(s)), self._literal(o))
        return None
