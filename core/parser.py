"""
Manchester-syntax parser.

Turns short textual descriptors into model objects. Names are resolved
against the session's signature map and prefix registry:

- ``Cat``           bare short name, looked up in the signature map
- ``xsd:double``    prefixed name, expanded through the prefix registry
- ``<http://...>``  full IRI, taken literally

In strict mode (queries) every name must already be known to the ontology.
In non-strict mode (adding axioms) unknown bare names become new entities
under the base IRI, their kind inferred from where they appear.
"""

import logging
import re
from collections import namedtuple
from typing import Dict, List, Optional, Set

from .model import (
    NOTHING, RDFS_LITERAL, THING, TOP_OBJECT_PROPERTY, BOTTOM_OBJECT_PROPERTY,
    TOP_DATA_PROPERTY, BOTTOM_DATA_PROPERTY, XSD_DATATYPES, XSD_NS, XSD_STRING,
    CHARACTERISTICS, Axiom, ClassAssertion, ClassExpression, DataAllValuesFrom,
    DataExactCardinality, DataHasValue, DataMaxCardinality, DataMinCardinality, DataOneOf,
    DataProperty, DataPropertyAssertion, DataPropertyDomain, DataPropertyRange, DataRange,
    DataSomeValuesFrom, Datatype, DatatypeRestriction, DifferentIndividuals, DisjointClasses,
    Entity, EntityKind, EquivalentClasses, EquivalentObjectProperties, FunctionalDataProperty,
    Individual, InverseObjectProperties, Literal, ObjectAllValuesFrom, ObjectComplementOf,
    ObjectExactCardinality, ObjectHasSelf, ObjectHasValue, ObjectIntersectionOf, ObjectInverseOf,
    ObjectMaxCardinality, ObjectMinCardinality, ObjectOneOf, ObjectProperty,
    ObjectPropertyAssertion, ObjectPropertyDomain, ObjectPropertyExpression, ObjectPropertyRange,
    ObjectSomeValuesFrom, ObjectUnionOf, Ontology, PrefixRegistry, SameIndividual, Signature,
    SubClassOf, SubDataPropertyOf, SubObjectPropertyOf, make_entity,
)

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when a Manchester-syntax string cannot be parsed."""

    def __init__(self, message: str, text: str = "", position: Optional[int] = None):
        self.message = message
        self.text = text
        self.position = position
        super().__init__(message)

    def __str__(self):
        where = f" at column {self.position + 1}" if self.position is not None else ""
        return f"{self.message}{where} in '{self.text}'"


Token = namedtuple("Token", "kind value pos")

_TOKEN_RE = re.compile(r"""
    (?P<ws>\s+)
  | (?P<iri><[^\s<>"{}|^`\\]+>)
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<number>[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?[fF]?)
  | (?P<facet><=|>=|<|>)
  | (?P<punct>\^\^|[(){}\[\],@])
  | (?P<name>[A-Za-z_][\w\-]*(?::[\w][\w\-]*)?:?|:[A-Za-z_][\w\-]*)
""", re.VERBOSE)

RESTRICTION_KEYWORDS = {"some", "only", "value", "min", "max", "exactly", "self"}
CONNECTIVES = {"and", "or", "that", "not", "inverse"}
CLASS_AXIOM_KEYWORDS = {"subclassof", "equivalentto", "disjointwith"}
INDIVIDUAL_KEYWORDS = {"type", "types", "sameas", "differentfrom"}
PROPERTY_KEYWORDS = {"subpropertyof", "inverseof", "domain", "range", "characteristics"}
FRAME_KEYWORDS = {"disjointclasses", "differentindividuals", "sameindividual"}
AXIOM_KEYWORDS = CLASS_AXIOM_KEYWORDS | INDIVIDUAL_KEYWORDS | PROPERTY_KEYWORDS
KEYWORDS = RESTRICTION_KEYWORDS | CONNECTIVES | AXIOM_KEYWORDS | FRAME_KEYWORDS

FACETS = {
    "<": XSD_NS + "maxExclusive",
    "<=": XSD_NS + "maxInclusive",
    ">": XSD_NS + "minExclusive",
    ">=": XSD_NS + "minInclusive",
    "length": XSD_NS + "length",
    "minlength": XSD_NS + "minLength",
    "maxlength": XSD_NS + "maxLength",
    "pattern": XSD_NS + "pattern",
}

BUILTIN_NAMES = {
    "Thing": (EntityKind.CLASS, THING),
    "Nothing": (EntityKind.CLASS, NOTHING),
    "topObjectProperty": (EntityKind.OBJECT_PROPERTY, TOP_OBJECT_PROPERTY),
    "bottomObjectProperty": (EntityKind.OBJECT_PROPERTY, BOTTOM_OBJECT_PROPERTY),
    "topDataProperty": (EntityKind.DATA_PROPERTY, TOP_DATA_PROPERTY),
    "bottomDataProperty": (EntityKind.DATA_PROPERTY, BOTTOM_DATA_PROPERTY),
    "Literal": (EntityKind.DATATYPE, RDFS_LITERAL),
}
BUILTIN_NAMES.update({name: (EntityKind.DATATYPE, XSD_NS + name) for name in XSD_DATATYPES})
BUILTIN_PAIRS = frozenset(BUILTIN_NAMES.values())

KIND_LABELS = {
    EntityKind.CLASS: "class",
    EntityKind.OBJECT_PROPERTY: "object property",
    EntityKind.DATA_PROPERTY: "data property",
    EntityKind.INDIVIDUAL: "individual",
    EntityKind.DATATYPE: "datatype",
}


def tokenize(text: str) -> List[Token]:
    tokens = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ParseError(f"Unexpected character '{text[pos]}'", text, pos)
        if match.lastgroup != "ws":
            tokens.append(Token(match.lastgroup, match.group(), pos))
        pos = match.end()
    return tokens


def keyword(token: Optional[Token]) -> Optional[str]:
    """Normalised keyword for a name token (case-insensitive, optional colon)."""
    if token is None or token.kind != "name":
        return None
    word = token.value[:-1] if token.value.endswith(":") else token.value
    if ":" in word:
        return None
    word = word.lower()
    return word if word in KEYWORDS or word in CHARACTERISTICS else None


class ManchesterParser:
    """
    Parser bound to an ontology, its signature map and prefix registry.

    The session rebinds the parser whenever the ontology is replaced; no other
    state is kept between calls.
    """

    def __init__(self, ontology: Optional[Ontology] = None,
                 signature: Optional[Signature] = None,
                 prefixes: Optional[PrefixRegistry] = None):
        self.bind(ontology, signature, prefixes)

    def bind(self, ontology: Optional[Ontology], signature: Optional[Signature],
             prefixes: Optional[PrefixRegistry]):
        self.ontology = ontology
        # an empty Signature is falsy, so test for None
        if signature is None:
            signature = Signature()
        if prefixes is None:
            prefixes = PrefixRegistry(ontology.iri if ontology is not None else None)
        self.signature = signature
        self.prefixes = prefixes

    def parse_class_expression(self, text: str, strict: bool = True) -> ClassExpression:
        """
        Parse a class expression such as ``Animal and (hasPart some Leg)``.

        Args:
            text: Manchester-syntax class expression
            strict: Reject names the ontology does not know

        Returns:
            The parsed class expression

        Raises:
            ParseError: If the text is malformed or names are unknown in strict mode
        """
        reader = _Reader(self, text, strict)
        expression = reader.description()
        reader.expect_end()
        return expression

    def parse_axiom(self, text: str, strict: bool = False) -> Axiom:
        """
        Parse an axiom such as ``Cat SubClassOf Mammal`` or ``felix hasOwner max``.

        Args:
            text: Manchester-syntax axiom
            strict: Reject names the ontology does not know

        Returns:
            The parsed axiom

        Raises:
            ParseError: If the text is malformed or names are unknown in strict mode
        """
        reader = _Reader(self, text, strict)
        axiom = reader.axiom()
        reader.expect_end()
        return axiom

    def parse_individual(self, text: str, strict: bool = True) -> Individual:
        reader = _Reader(self, text, strict)
        individual = reader.individual()
        reader.expect_end()
        return individual

    def parse_object_property(self, text: str, strict: bool = True) -> ObjectProperty:
        reader = _Reader(self, text, strict)
        prop = reader.entity(reader.next(), EntityKind.OBJECT_PROPERTY)
        reader.expect_end()
        return prop

    def parse_property(self, text: str, strict: bool = True) -> Entity:
        """Parse an object or data property name."""
        reader = _Reader(self, text, strict)
        token = reader.peek()
        if token is None:
            raise ParseError("Expected a property name", text, 0)
        kinds = reader.kinds_of(token)
        kind = (EntityKind.DATA_PROPERTY
                if EntityKind.DATA_PROPERTY in kinds and EntityKind.OBJECT_PROPERTY not in kinds
                else EntityKind.OBJECT_PROPERTY)
        prop = reader.entity(reader.next(), kind)
        reader.expect_end()
        return prop


class _Reader:
    """Recursive-descent reader over one input string."""

    def __init__(self, parser: ManchesterParser, text: str, strict: bool):
        self.parser = parser
        self.text = text
        self.strict = strict
        self.tokens = tokenize(text)
        self.index = 0
        self._known: Dict[EntityKind, Set[str]] = {}

    # -- token helpers --------------------------------------------------------

    def peek(self, offset: int = 0) -> Optional[Token]:
        position = self.index + offset
        return self.tokens[position] if position < len(self.tokens) else None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of input", self.text, len(self.text))
        self.index += 1
        return token

    def error(self, message: str, token: Optional[Token] = None) -> ParseError:
        token = token if token is not None else self.peek()
        position = token.pos if token is not None else len(self.text)
        return ParseError(message, self.text, position)

    def expect(self, value: str) -> Token:
        token = self.peek()
        if token is None or token.value != value:
            found = f"'{token.value}'" if token else "end of input"
            raise self.error(f"Expected '{value}' but found {found}", token)
        return self.next()

    def accept(self, value: str) -> bool:
        token = self.peek()
        if token is not None and token.value == value:
            self.index += 1
            return True
        return False

    def accept_keyword(self, *words: str) -> Optional[str]:
        word = keyword(self.peek())
        if word in words:
            self.index += 1
            return word
        return None

    def expect_end(self):
        token = self.peek()
        if token is not None:
            raise self.error(f"Encountered '{token.value}' where the input should have ended", token)

    # -- name resolution ------------------------------------------------------

    def _resolve(self, token: Token, kind: EntityKind) -> Optional[str]:
        if token.kind == "iri":
            return token.value[1:-1]
        if token.kind != "name":
            return None
        value = token.value
        if ":" in value.rstrip(":"):
            label, local = value.split(":", 1)
            stem = self.parser.prefixes.expand(label)
            if stem is None:
                raise self.error(f"Unknown prefix '{label}:'", token)
            return stem + local
        iri = self.parser.signature.lookup(value, kind)
        if iri is not None:
            return iri
        builtin = BUILTIN_NAMES.get(value)
        if builtin is not None and builtin[0] is kind:
            return builtin[1]
        return None

    def _is_known(self, iri: str, kind: EntityKind) -> bool:
        if (kind, iri) in BUILTIN_PAIRS:
            return True
        if kind is EntityKind.DATATYPE and iri.startswith(XSD_NS):
            return True
        ontology = self.parser.ontology
        if ontology is None:
            return False
        if kind not in self._known:
            self._known[kind] = {e.iri for e in ontology.entities(kind)}
        return iri in self._known[kind]

    def kinds_of(self, token: Token) -> List[EntityKind]:
        kinds = []
        for kind in EntityKind:
            if token.kind == "name" and ":" not in token.value.rstrip(":"):
                if self.parser.signature.lookup(token.value, kind) is not None:
                    kinds.append(kind)
                elif BUILTIN_NAMES.get(token.value, (None,))[0] is kind:
                    kinds.append(kind)
            else:
                try:
                    iri = self._resolve(token, kind)
                except ParseError:
                    return []
                if iri is not None and self._is_known(iri, kind):
                    kinds.append(kind)
        return kinds

    def _declared(self, token: Optional[Token], kind: Optional[EntityKind] = None) -> bool:
        """Whether a bare name token is a declared short name (of ``kind``, if given)."""
        if token is None or token.kind != "name" or ":" in token.value:
            return False
        kinds = [kind] if kind is not None else list(EntityKind)
        return any(self.parser.signature.lookup(token.value, k) is not None for k in kinds)

    def _reserved(self, token: Optional[Token]) -> bool:
        """A keyword that is not also a declared short name."""
        return keyword(token) is not None and not self._declared(token)

    def entity(self, token: Token, kind: EntityKind) -> Entity:
        if token.kind not in ("name", "iri") or (
                keyword(token) in KEYWORDS and not self._declared(token, kind)):
            raise self.error(f"Expected {KIND_LABELS[kind]} name but found '{token.value}'", token)
        iri = self._resolve(token, kind)
        if self.strict:
            if iri is None or not self._is_known(iri, kind):
                raise self.error(f"Unknown {KIND_LABELS[kind]} name '{token.value}'", token)
        elif iri is None:
            if kind is EntityKind.DATATYPE:
                raise self.error(f"Unknown datatype '{token.value}'", token)
            base = self.parser.prefixes.base
            if base is None:
                raise self.error("No ontology to resolve names against", token)
            iri = base + token.value
        return make_entity(kind, iri)

    # -- lookahead predicates -------------------------------------------------

    def _is_literal_start(self, token: Optional[Token]) -> bool:
        if token is None:
            return False
        if token.kind in ("string", "number"):
            return True
        return token.kind == "name" and token.value in ("true", "false")

    def _is_datatype(self, token: Optional[Token]) -> bool:
        if token is None or token.kind not in ("name", "iri") or keyword(token):
            return False
        bare = token.kind == "name" and ":" not in token.value.rstrip(":")
        if bare and EntityKind.CLASS in self.kinds_of(token):
            return False
        try:
            iri = self._resolve(token, EntityKind.DATATYPE)
        except ParseError:
            return False
        return iri is not None and self._is_known(iri, EntityKind.DATATYPE)

    def _is_data_range_start(self, offset: int = 0) -> bool:
        token = self.peek(offset)
        if token is None:
            return False
        if token.value == "{":
            return self._is_literal_start(self.peek(offset + 1))
        if token.value == "(":
            return self._is_data_range_start(offset + 1)
        return self._is_datatype(token)

    def _at_filler_start(self) -> bool:
        token = self.peek()
        if token is None:
            return False
        if token.value in ("(", "{"):
            return True
        if token.kind not in ("name", "iri"):
            return False
        word = keyword(token)
        return word is None or word in ("not", "inverse") or self._declared(token, EntityKind.CLASS)

    def _property_kind(self, token: Token, offset: int) -> EntityKind:
        """Decide object vs data property for a restriction starting at ``token``."""
        kinds = self.kinds_of(token)
        is_object = EntityKind.OBJECT_PROPERTY in kinds
        is_data = EntityKind.DATA_PROPERTY in kinds
        if is_object != is_data:
            return EntityKind.OBJECT_PROPERTY if is_object else EntityKind.DATA_PROPERTY
        word = keyword(self.peek(offset))
        if word == "value":
            following = self.peek(offset + 1)
            literal = self._is_literal_start(following)
            if following is not None and following.kind == "name" and literal:
                literal = EntityKind.INDIVIDUAL not in self.kinds_of(following)
            return EntityKind.DATA_PROPERTY if literal else EntityKind.OBJECT_PROPERTY
        if word in ("min", "max", "exactly"):
            offset += 1
        if word in ("some", "only", "min", "max", "exactly") and self._is_data_range_start(offset + 1):
            return EntityKind.DATA_PROPERTY
        return EntityKind.OBJECT_PROPERTY

    # -- class expressions ----------------------------------------------------

    def description(self) -> ClassExpression:
        operands = [self.conjunction()]
        while self.accept_keyword("or"):
            operands.append(self.conjunction())
        if len(operands) == 1:
            return operands[0]
        return ObjectUnionOf(frozenset(operands))

    def conjunction(self) -> ClassExpression:
        operands = [self.primary()]
        while self.accept_keyword("and", "that"):
            operands.append(self.primary())
        if len(operands) == 1:
            return operands[0]
        return ObjectIntersectionOf(frozenset(operands))

    def primary(self) -> ClassExpression:
        token = self.peek()
        if token is None:
            raise self.error("Expected a class expression but the input ended")
        if self.accept_keyword("not"):
            return ObjectComplementOf(self.primary())
        if self.accept("("):
            inner = self.description()
            self.expect(")")
            return inner
        if self.accept("{"):
            individuals = [self.individual()]
            while self.accept(","):
                individuals.append(self.individual())
            self.expect("}")
            return ObjectOneOf(frozenset(individuals))
        if keyword(token) == "inverse":
            prop = self.object_property_expression()
            return self.restriction(prop, EntityKind.OBJECT_PROPERTY)
        if keyword(self.peek(1)) in RESTRICTION_KEYWORDS and token.kind in ("name", "iri"):
            kind = self._property_kind(token, 1)
            prop = self.entity(self.next(), kind)
            return self.restriction(prop, kind)
        return self.entity(self.next(), EntityKind.CLASS)

    def object_property_expression(self) -> ObjectPropertyExpression:
        if self.accept_keyword("inverse"):
            parenthesised = self.accept("(")
            prop = self.entity(self.next(), EntityKind.OBJECT_PROPERTY)
            if parenthesised:
                self.expect(")")
            return ObjectInverseOf(prop)
        return self.entity(self.next(), EntityKind.OBJECT_PROPERTY)

    def restriction(self, prop, kind: EntityKind) -> ClassExpression:
        token = self.peek()
        word = self.accept_keyword(*RESTRICTION_KEYWORDS)
        if word is None:
            found = f"'{token.value}'" if token else "end of input"
            raise self.error(f"Expected a restriction keyword but found {found}", token)
        data = kind is EntityKind.DATA_PROPERTY
        if word == "self":
            if data:
                raise self.error("Self restrictions need an object property", token)
            return ObjectHasSelf(prop)
        if word == "value":
            if data:
                return DataHasValue(prop, self.literal())
            return ObjectHasValue(prop, self.individual())
        if word in ("some", "only"):
            if data:
                filler = self.data_range()
                return (DataSomeValuesFrom if word == "some" else DataAllValuesFrom)(prop, filler)
            filler = self.primary()
            return (ObjectSomeValuesFrom if word == "some" else ObjectAllValuesFrom)(prop, filler)
        number = self.next()
        if number.kind != "number" or not number.value.isdigit():
            raise self.error(f"Expected a non-negative integer but found '{number.value}'", number)
        cardinality = int(number.value)
        if data:
            kinds = {"min": DataMinCardinality, "max": DataMaxCardinality,
                     "exactly": DataExactCardinality}
            if self._is_data_range_start():
                return kinds[word](cardinality, prop, self.data_range())
            return kinds[word](cardinality, prop)
        kinds = {"min": ObjectMinCardinality, "max": ObjectMaxCardinality,
                 "exactly": ObjectExactCardinality}
        if self._at_filler_start():
            return kinds[word](cardinality, prop, self.primary())
        return kinds[word](cardinality, prop)

    # -- data ranges and literals ---------------------------------------------

    def data_range(self) -> DataRange:
        if self.accept("("):
            inner = self.data_range()
            self.expect(")")
            return inner
        if self.accept("{"):
            values = [self.literal()]
            while self.accept(","):
                values.append(self.literal())
            self.expect("}")
            return DataOneOf(frozenset(values))
        datatype = self.entity(self.next(), EntityKind.DATATYPE)
        if not self.accept("["):
            return datatype
        facets = [self.facet()]
        while self.accept(","):
            facets.append(self.facet())
        self.expect("]")
        return DatatypeRestriction(datatype, tuple(facets))

    def facet(self):
        token = self.next()
        facet = FACETS.get(token.value.lower())
        if facet is None:
            raise self.error(f"Unknown facet '{token.value}'", token)
        return facet, self.literal()

    def literal(self) -> Literal:
        token = self.next()
        if token.kind == "string":
            lexical = re.sub(r"\\(.)", r"\1", token.value[1:-1])
            if self.accept("^^"):
                datatype = self.entity(self.next(), EntityKind.DATATYPE)
                return Literal(lexical, datatype.iri)
            if self.accept("@"):
                lang = self.next()
                if lang.kind != "name":
                    raise self.error(f"Expected a language tag but found '{lang.value}'", lang)
                return Literal(lexical, XSD_STRING, lang.value)
            return Literal(lexical)
        if token.kind == "number":
            value = token.value
            if value[-1] in "fF":
                return Literal(value[:-1], XSD_NS + "float")
            if "e" in value or "E" in value:
                return Literal(value, XSD_NS + "double")
            if "." in value:
                return Literal(value, XSD_NS + "decimal")
            return Literal(value, XSD_NS + "integer")
        if token.kind == "name" and token.value in ("true", "false"):
            return Literal(token.value, XSD_NS + "boolean")
        raise self.error(f"Expected a literal but found '{token.value}'", token)

    def individual(self) -> Individual:
        return self.entity(self.next(), EntityKind.INDIVIDUAL)

    def individual_list(self) -> List[Individual]:
        individuals = [self.individual()]
        while self.accept(","):
            individuals.append(self.individual())
        return individuals

    # -- axioms ---------------------------------------------------------------

    def axiom(self) -> Axiom:
        first, second = self.peek(), self.peek(1)
        if first is None:
            raise self.error("Expected an axiom but the input was empty")
        head = keyword(first)

        if head in FRAME_KEYWORDS and first.value.endswith(":"):
            self.next()
            if head == "disjointclasses":
                operands = [self.description()]
                while self.accept(","):
                    operands.append(self.description())
                return DisjointClasses(frozenset(operands))
            individuals = frozenset(self.individual_list())
            if head == "sameindividual":
                return SameIndividual(individuals)
            return DifferentIndividuals(individuals)

        if head in CHARACTERISTICS and first.value.endswith(":"):
            self.next()
            return self._characteristic(head, self.next())

        second_word = keyword(second)
        if second_word in INDIVIDUAL_KEYWORDS:
            return self._individual_axiom()
        if second_word in PROPERTY_KEYWORDS or (
                second_word in ("equivalentto", "disjointwith") and self._is_property(first)):
            return self._property_axiom()
        if self._is_fact():
            return self._fact()
        return self._class_axiom()

    def _is_property(self, token: Token) -> bool:
        kinds = self.kinds_of(token)
        return EntityKind.OBJECT_PROPERTY in kinds or EntityKind.DATA_PROPERTY in kinds

    def _is_fact(self) -> bool:
        if len(self.tokens) < 3:
            return False
        first, second = self.tokens[0], self.tokens[1]
        if first.kind not in ("name", "iri") or second.kind not in ("name", "iri"):
            return False
        if self._reserved(first) or self._reserved(second):
            return False
        return not any(keyword(t) in AXIOM_KEYWORDS | CONNECTIVES | RESTRICTION_KEYWORDS
                       for t in self.tokens if not self._declared(t))

    def _fact(self) -> Axiom:
        subject = self.individual()
        prop_token = self.next()
        if self._is_literal_start(self.peek()) and not (
                self.peek().kind == "name"
                and EntityKind.INDIVIDUAL in self.kinds_of(self.peek())):
            prop = self.entity(prop_token, EntityKind.DATA_PROPERTY)
            return DataPropertyAssertion(prop, subject, self.literal())
        prop = self.entity(prop_token, EntityKind.OBJECT_PROPERTY)
        return ObjectPropertyAssertion(prop, subject, self.individual())

    def _individual_axiom(self) -> Axiom:
        subject = self.individual()
        word = self.accept_keyword(*INDIVIDUAL_KEYWORDS)
        if word in ("type", "types"):
            return ClassAssertion(self.description(), subject)
        others = self.individual_list()
        if word == "sameas":
            return SameIndividual(frozenset([subject] + others))
        return DifferentIndividuals(frozenset([subject] + others))

    def _property_axiom(self) -> Axiom:
        first, second = self.peek(), self.peek(1)
        word = keyword(second)
        kinds = self.kinds_of(first) if first.kind in ("name", "iri") else []
        data = EntityKind.DATA_PROPERTY in kinds and EntityKind.OBJECT_PROPERTY not in kinds
        if not kinds and word == "range":
            data = self._is_data_range_start(2)
        if not kinds and word == "subpropertyof" and self.peek(2) is not None:
            data = self._is_property_of_kind(self.peek(2), EntityKind.DATA_PROPERTY)

        if data:
            prop = self.entity(self.next(), EntityKind.DATA_PROPERTY)
        else:
            prop = self.object_property_expression()
        word = self.accept_keyword(*(PROPERTY_KEYWORDS | {"equivalentto", "disjointwith"}))

        if word == "characteristics":
            characteristic = self.next()
            if self.peek() is not None and self.peek().value == ",":
                raise self.error("Only one characteristic may be given per axiom")
            name = characteristic.value.rstrip(":").lower()
            if data:
                if name != "functional":
                    raise self.error(f"Data properties can only be Functional, not "
                                     f"'{characteristic.value}'", characteristic)
                return FunctionalDataProperty(prop)
            cls = CHARACTERISTICS.get(name)
            if cls is None:
                raise self.error(f"Unknown characteristic '{characteristic.value}'", characteristic)
            return cls(prop)

        if data:
            if word == "subpropertyof":
                return SubDataPropertyOf(prop, self.entity(self.next(), EntityKind.DATA_PROPERTY))
            if word == "domain":
                return DataPropertyDomain(prop, self.description())
            if word == "range":
                return DataPropertyRange(prop, self.data_range())
            raise self.error(f"'{second.value}' is not supported for data properties", second)

        if word == "subpropertyof":
            return SubObjectPropertyOf(prop, self.object_property_expression())
        if word == "equivalentto":
            operands = [prop, self.object_property_expression()]
            while self.accept(","):
                operands.append(self.object_property_expression())
            return EquivalentObjectProperties(frozenset(operands))
        if word == "inverseof":
            other = self.entity(self.next(), EntityKind.OBJECT_PROPERTY)
            if not isinstance(prop, ObjectProperty):
                raise self.error("InverseOf needs two named properties", first)
            return InverseObjectProperties(prop, other)
        if word == "domain":
            return ObjectPropertyDomain(prop, self.description())
        if word == "range":
            return ObjectPropertyRange(prop, self.description())
        raise self.error(f"'{second.value}' is not supported for object properties", second)

    def _is_property_of_kind(self, token: Token, kind: EntityKind) -> bool:
        return kind in self.kinds_of(token)

    def _characteristic(self, name: str, token: Token) -> Axiom:
        kinds = self.kinds_of(token)
        if EntityKind.DATA_PROPERTY in kinds and EntityKind.OBJECT_PROPERTY not in kinds:
            if name != "functional":
                raise self.error(f"Data properties can only be Functional", token)
            return FunctionalDataProperty(self.entity(token, EntityKind.DATA_PROPERTY))
        return CHARACTERISTICS[name](self.entity(token, EntityKind.OBJECT_PROPERTY))

    def _class_axiom(self) -> Axiom:
        lhs = self.description()
        token = self.peek()
        word = self.accept_keyword(*CLASS_AXIOM_KEYWORDS)
        if word is None:
            found = f"'{token.value}'" if token else "end of input"
            raise self.error(f"Expected SubClassOf, EquivalentTo or DisjointWith but found {found}",
                             token)
        operands = [lhs, self.description()]
        if word == "subclassof":
            return SubClassOf(lhs, operands[1])
        while self.accept(","):
            operands.append(self.description())
        if word == "equivalentto":
            return EquivalentClasses(frozenset(operands))
        return DisjointClasses(frozenset(operands))
