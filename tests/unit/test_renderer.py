"""
Unit Tests for the Manchester-Style Renderer

Tests short names, class expressions, literals and axioms.
"""

import pytest

B = "http://t/o1#"
XSD = "http://www.w3.org/2001/XMLSchema#"


@pytest.fixture
def renderer():
    """Renderer over the test base IRI."""
    from core.model import PrefixRegistry
    from core.renderer import Renderer

    return Renderer(PrefixRegistry(B))


@pytest.mark.unit
class TestShortNames:
    """Test IRI shortening."""

    def test_base_iri_becomes_local_name(self, renderer):
        """Test names under the base IRI render without a prefix."""
        from core.model import OWLClass

        assert renderer.render(OWLClass(B + "Cat")) == "Cat"

    def test_registered_prefix(self, renderer):
        """Test names under a registered prefix keep the label."""
        from core.model import Datatype

        assert renderer.render(Datatype(XSD + "double")) == "xsd:double"

    def test_unknown_iri_in_angle_brackets(self, renderer):
        """Test the full-IRI fallback."""
        from core.model import OWLClass

        assert renderer.render(OWLClass("http://elsewhere/Cat")) == "<http://elsewhere/Cat>"

    def test_top_and_bottom_tokens(self, renderer):
        """Test Thing and Nothing render as their canonical tokens."""
        from core.model import NOTHING_CLASS, THING_CLASS

        assert renderer.render(THING_CLASS) == "Thing"
        assert renderer.render(NOTHING_CLASS) == "Nothing"


@pytest.mark.unit
class TestClassExpressions:
    """Test rendering of anonymous classes."""

    def test_intersection_is_sorted(self, renderer):
        """Test n-ary operands render in a stable order."""
        from core.model import ObjectIntersectionOf, OWLClass

        expression = ObjectIntersectionOf(frozenset([OWLClass(B + "Dog"), OWLClass(B + "Cat")]))

        assert renderer.render(expression) == "Cat and Dog"

    def test_nested_expressions_are_parenthesised(self, renderer):
        """Test a union inside a restriction gets brackets."""
        from core.model import ObjectProperty, ObjectSomeValuesFrom, ObjectUnionOf, OWLClass

        expression = ObjectSomeValuesFrom(
            ObjectProperty(B + "eats"),
            ObjectUnionOf(frozenset([OWLClass(B + "Mouse"), OWLClass(B + "Fish")])))

        assert renderer.render(expression) == "eats some (Fish or Mouse)"

    def test_complement(self, renderer):
        """Test negation."""
        from core.model import ObjectComplementOf, OWLClass

        assert renderer.render(ObjectComplementOf(OWLClass(B + "Animal"))) == "not Animal"

    def test_unqualified_cardinality(self, renderer):
        """Test a Thing filler is left out."""
        from core.model import ObjectMaxCardinality, ObjectProperty

        assert renderer.render(ObjectMaxCardinality(1, ObjectProperty(B + "hasOwner"))) == "hasOwner max 1"

    def test_facet_restriction(self, renderer):
        """Test datatype restrictions with facets."""
        from core.model import (
            DataProperty, DataSomeValuesFrom, Datatype, DatatypeRestriction, Literal,
        )

        restriction = DatatypeRestriction(
            Datatype(XSD + "integer"), ((XSD + "minInclusive", Literal("18", XSD + "integer")),))

        assert renderer.render(DataSomeValuesFrom(DataProperty(B + "age"), restriction)) == \
            "age some xsd:integer[>= 18]"


@pytest.mark.unit
class TestLiterals:
    """Test literal rendering."""

    def test_plain_string(self, renderer):
        """Test strings are quoted."""
        from core.model import Literal

        assert renderer.render(Literal("Tom")) == '"Tom"'

    def test_numbers_are_bare(self, renderer):
        """Test integers render without a datatype."""
        from core.model import Literal

        assert renderer.render(Literal("5", XSD + "integer")) == "5"

    def test_typed_and_tagged(self, renderer):
        """Test other datatypes and language tags."""
        from core.model import Literal, XSD_STRING

        assert renderer.render(Literal("2.5", XSD + "double")) == '"2.5"^^xsd:double'
        assert renderer.render(Literal("chat", XSD_STRING, "fr")) == '"chat"@fr'


@pytest.mark.unit
class TestAxioms:
    """Test axiom rendering."""

    def test_declaration(self, renderer):
        """Test declarations echo the entity kind."""
        from core.model import Declaration, Individual, OWLClass

        assert renderer.render(Declaration(OWLClass(B + "Cat"))) == "Class: Cat"
        assert renderer.render(Declaration(Individual(B + "felix"))) == "Individual: felix"

    def test_subclass(self, renderer):
        """Test SubClassOf."""
        from core.model import OWLClass, SubClassOf

        assert renderer.render(SubClassOf(OWLClass(B + "Cat"), OWLClass(B + "Mammal"))) == \
            "Cat SubClassOf Mammal"

    def test_equivalence_puts_named_class_first(self, renderer):
        """Test the atomic operand leads an equivalence."""
        from core.model import EquivalentClasses, ObjectIntersectionOf, OWLClass

        axiom = EquivalentClasses(frozenset([
            ObjectIntersectionOf(frozenset([OWLClass(B + "Cat"), OWLClass(B + "Dog")])),
            OWLClass(B + "Paradox"),
        ]))

        assert renderer.render(axiom) == "Paradox EquivalentTo (Cat and Dog)"

    def test_assertions(self, renderer):
        """Test class and property assertions."""
        from core.model import ClassAssertion, Individual, ObjectProperty, ObjectPropertyAssertion, OWLClass

        felix, max_ = Individual(B + "felix"), Individual(B + "max")

        assert renderer.render(ClassAssertion(OWLClass(B + "Cat"), felix)) == "felix Type Cat"
        assert renderer.render(ObjectPropertyAssertion(ObjectProperty(B + "likes"), felix, max_)) == \
            "felix likes max"

    def test_characteristic(self, renderer):
        """Test property characteristics."""
        from core.model import ObjectProperty, TransitiveObjectProperty

        assert renderer.render(TransitiveObjectProperty(ObjectProperty(B + "partOf"))) == \
            "Transitive: partOf"

    def test_rendered_axiom_parses_back(self, renderer, parser):
        """Test rendered text is valid parser input."""
        from core.model import DisjointClasses, OWLClass

        axiom = DisjointClasses(frozenset([OWLClass(B + "Cat"), OWLClass(B + "Dog")]))

        assert parser.parse_axiom(renderer.render(axiom), strict=True) == axiom
