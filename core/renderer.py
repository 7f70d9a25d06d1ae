"""
Manchester-style rendering of model objects for console output.
"""

import re
from typing import Iterable, List

from .model import (
    NOTHING, THING, RDFS_LITERAL, XSD_STRING, XSD_NS,
    Axiom, ClassAssertion, ClassExpression, DataAllValuesFrom, DataExactCardinality,
    DataHasValue, DataMaxCardinality, DataMinCardinality, DataOneOf, DataPropertyAssertion,
    DataPropertyDomain, DataPropertyRange, DataSomeValuesFrom, Datatype, DatatypeRestriction,
    Declaration, DifferentIndividuals, DisjointClasses, Entity, EquivalentClasses,
    EquivalentObjectProperties, FunctionalDataProperty, InverseObjectProperties, Literal,
    ObjectAllValuesFrom, ObjectComplementOf, ObjectExactCardinality, ObjectHasSelf,
    ObjectHasValue, ObjectIntersectionOf, ObjectInverseOf, ObjectMaxCardinality,
    ObjectMinCardinality, ObjectOneOf, ObjectPropertyAssertion, ObjectPropertyCharacteristic,
    ObjectPropertyDomain, ObjectPropertyRange, ObjectSomeValuesFrom, ObjectUnionOf,
    PrefixRegistry, SameIndividual, SubClassOf, SubDataPropertyOf, SubObjectPropertyOf,
)

_LOCAL_NAME = re.compile(r"^[A-Za-z_][\w\-]*$")

FACET_SYMBOLS = {
    XSD_NS + "minInclusive": ">=",
    XSD_NS + "minExclusive": ">",
    XSD_NS + "maxInclusive": "<=",
    XSD_NS + "maxExclusive": "<",
    XSD_NS + "length": "length",
    XSD_NS + "minLength": "minLength",
    XSD_NS + "maxLength": "maxLength",
    XSD_NS + "pattern": "pattern",
}

_UNQUOTED_TYPES = {
    XSD_NS + "integer", XSD_NS + "decimal", XSD_NS + "boolean",
}


class Renderer:
    """Turns entities, expressions and axioms into short readable strings."""

    def __init__(self, prefixes: PrefixRegistry):
        self.prefixes = prefixes

    def render(self, obj) -> str:
        if isinstance(obj, Entity):
            return self.short_name(obj.iri)
        if isinstance(obj, Literal):
            return self.literal(obj)
        if isinstance(obj, ObjectInverseOf):
            return f"inverse {self.render(obj.property)}"
        if isinstance(obj, ClassExpression):
            return self._class_expression(obj)
        if isinstance(obj, (DatatypeRestriction, DataOneOf)):
            return self._data_range(obj)
        if isinstance(obj, Axiom):
            return self._axiom(obj)
        return str(obj)

    def render_all(self, objects: Iterable) -> List[str]:
        return [self.render(obj) for obj in objects]

    def short_name(self, iri: str) -> str:
        if iri == THING:
            return "Thing"
        if iri == NOTHING:
            return "Nothing"
        shortened = self.prefixes.shorten(iri)
        if shortened is not None:
            label, local = shortened
            if _LOCAL_NAME.match(local):
                return f"{label}:{local}" if label else local
        return f"<{iri}>"

    def literal(self, literal: Literal) -> str:
        escaped = literal.lexical.replace("\\", "\\\\").replace('"', '\\"')
        if literal.lang:
            return f'"{escaped}"@{literal.lang}'
        if literal.datatype == XSD_STRING:
            return f'"{escaped}"'
        if literal.datatype in _UNQUOTED_TYPES:
            return literal.lexical
        return f'"{escaped}"^^{self.short_name(literal.datatype)}'

    # -------------------------------------------------------------------------

    def _nested(self, expression: ClassExpression) -> str:
        text = self._class_expression(expression)
        if isinstance(expression, (ObjectIntersectionOf, ObjectUnionOf)):
            return f"({text})"
        return text

    def _sorted(self, operands) -> List[str]:
        keyed = [(not isinstance(op, Entity), self._nested(op)) for op in operands]
        return [text for _, text in sorted(keyed)]

    def _class_expression(self, ce: ClassExpression) -> str:
        if isinstance(ce, Entity):
            return self.short_name(ce.iri)
        if isinstance(ce, ObjectIntersectionOf):
            return " and ".join(self._sorted(ce.operands))
        if isinstance(ce, ObjectUnionOf):
            return " or ".join(self._sorted(ce.operands))
        if isinstance(ce, ObjectComplementOf):
            return f"not {self._nested(ce.operand)}"
        if isinstance(ce, ObjectOneOf):
            return "{" + ", ".join(sorted(self.render(i) for i in ce.individuals)) + "}"
        if isinstance(ce, ObjectSomeValuesFrom):
            return f"{self.render(ce.property)} some {self._nested(ce.filler)}"
        if isinstance(ce, ObjectAllValuesFrom):
            return f"{self.render(ce.property)} only {self._nested(ce.filler)}"
        if isinstance(ce, ObjectHasValue):
            return f"{self.render(ce.property)} value {self.render(ce.value)}"
        if isinstance(ce, ObjectHasSelf):
            return f"{self.render(ce.property)} Self"
        if isinstance(ce, DataSomeValuesFrom):
            return f"{self.render(ce.property)} some {self._data_range(ce.filler)}"
        if isinstance(ce, DataAllValuesFrom):
            return f"{self.render(ce.property)} only {self._data_range(ce.filler)}"
        if isinstance(ce, DataHasValue):
            return f"{self.render(ce.property)} value {self.literal(ce.value)}"
        for kinds, keyword in (((ObjectMinCardinality, DataMinCardinality), "min"),
                               ((ObjectMaxCardinality, DataMaxCardinality), "max"),
                               ((ObjectExactCardinality, DataExactCardinality), "exactly")):
            if isinstance(ce, kinds):
                text = f"{self.render(ce.property)} {keyword} {ce.cardinality}"
                filler = ce.filler
                if isinstance(filler, Entity) and filler.iri in (THING, RDFS_LITERAL):
                    return text
                if isinstance(filler, ClassExpression):
                    return f"{text} {self._nested(filler)}"
                return f"{text} {self._data_range(filler)}"
        raise TypeError(f"Cannot render class expression {ce!r}")

    def _data_range(self, dr) -> str:
        if isinstance(dr, Datatype):
            return self.short_name(dr.iri)
        if isinstance(dr, DatatypeRestriction):
            facets = ", ".join(
                f"{FACET_SYMBOLS.get(facet, self.short_name(facet))} {self.literal(value)}"
                for facet, value in dr.facets
            )
            return f"{self.short_name(dr.datatype.iri)}[{facets}]"
        if isinstance(dr, DataOneOf):
            return "{" + ", ".join(sorted(self.literal(v) for v in dr.values)) + "}"
        raise TypeError(f"Cannot render data range {dr!r}")

    def _axiom(self, axiom: Axiom) -> str:
        r = self.render
        if isinstance(axiom, Declaration):
            return f"{axiom.entity.kind.value}: {r(axiom.entity)}"
        if isinstance(axiom, SubClassOf):
            return f"{self._nested(axiom.sub_class)} SubClassOf {self._nested(axiom.super_class)}"
        if isinstance(axiom, EquivalentClasses):
            return " EquivalentTo ".join(self._sorted(axiom.operands))
        if isinstance(axiom, DisjointClasses):
            operands = self._sorted(axiom.operands)
            if len(operands) == 2:
                return " DisjointWith ".join(operands)
            return "DisjointClasses: " + ", ".join(operands)
        if isinstance(axiom, ClassAssertion):
            return f"{r(axiom.individual)} Type {self._nested(axiom.class_expression)}"
        if isinstance(axiom, (ObjectPropertyAssertion, DataPropertyAssertion)):
            target = axiom.object if isinstance(axiom, ObjectPropertyAssertion) else axiom.value
            return f"{r(axiom.subject)} {r(axiom.property)} {r(target)}"
        if isinstance(axiom, SameIndividual):
            return " SameAs ".join(sorted(r(i) for i in axiom.individuals))
        if isinstance(axiom, DifferentIndividuals):
            return "DifferentIndividuals: " + ", ".join(sorted(r(i) for i in axiom.individuals))
        if isinstance(axiom, (SubObjectPropertyOf, SubDataPropertyOf)):
            return f"{r(axiom.sub_property)} SubPropertyOf {r(axiom.super_property)}"
        if isinstance(axiom, EquivalentObjectProperties):
            return " EquivalentTo ".join(sorted(r(p) for p in axiom.operands))
        if isinstance(axiom, InverseObjectProperties):
            return f"{r(axiom.first)} InverseOf {r(axiom.second)}"
        if isinstance(axiom, (ObjectPropertyDomain, DataPropertyDomain)):
            return f"{r(axiom.property)} Domain {self._nested(axiom.domain)}"
        if isinstance(axiom, ObjectPropertyRange):
            return f"{r(axiom.property)} Range {self._nested(axiom.range)}"
        if isinstance(axiom, DataPropertyRange):
            return f"{r(axiom.property)} Range {self._data_range(axiom.range)}"
        if isinstance(axiom, ObjectPropertyCharacteristic):
            return f"{axiom.characteristic}: {r(axiom.property)}"
        if isinstance(axiom, FunctionalDataProperty):
            return f"Functional: {r(axiom.property)}"
        raise TypeError(f"Cannot render axiom {axiom!r}")
