"""
Unit Tests for the owlready2 Back-Ends

Tests reading a taxonomy back out of an owlready2 World. The World is built
directly with owlready2 classes, so no reasoner (and no Java) runs.
"""

import pytest

B = "http://t/o1#"


@pytest.fixture
def zoo_world():
    """World holding Animal > Cat, individuals felix and tom, and felix chases tom."""
    from owlready2 import ObjectProperty, Thing, World

    world = World()
    onto = world.get_ontology(B)
    with onto:
        class Animal(Thing):
            pass

        class Cat(Animal):
            pass

        class Kitten(Thing):
            equivalent_to = [Cat]

        class chases(ObjectProperty):
            pass

        felix = Cat("felix")
        tom = Cat("tom")
        felix.chases = [tom]
    yield world
    world.close()


@pytest.fixture
def zoo_entities():
    """Model entities for everything in zoo_world."""
    from core.model import Individual, ObjectProperty, OWLClass

    entities = [OWLClass(B + n) for n in ("Animal", "Cat", "Kitten")]
    entities += [Individual(B + "felix"), Individual(B + "tom"), ObjectProperty(B + "chases")]
    return dict.fromkeys(entities)


@pytest.mark.unit
class TestExtract:
    """Test taxonomy extraction from a World."""

    def test_class_hierarchy(self, zoo_world, zoo_entities):
        """Test told superclasses are closed transitively."""
        from reasoners.owlready_reasoner import HermitReasoner

        taxonomy = HermitReasoner()._extract(zoo_world, zoo_entities, {})

        assert B + "Animal" in taxonomy.super_classes(B + "Cat")
        assert not taxonomy.is_unsatisfiable(B + "Cat")

    def test_equivalent_classes(self, zoo_world, zoo_entities):
        """Test equivalence links both ways."""
        from reasoners.owlready_reasoner import PelletReasoner

        taxonomy = PelletReasoner()._extract(zoo_world, zoo_entities, {})

        assert B + "Cat" in taxonomy.equivalents(B + "Kitten")
        assert B + "Animal" in taxonomy.super_classes(B + "Kitten")

    def test_types_and_property_values(self, zoo_world, zoo_entities):
        """Test individuals get their classes and edges between known individuals."""
        from reasoners.owlready_reasoner import HermitReasoner

        taxonomy = HermitReasoner()._extract(zoo_world, zoo_entities, {})

        assert {B + "Cat", B + "Animal"} <= taxonomy.types[B + "felix"]
        assert taxonomy.property_values(B + "chases") == [(B + "felix", B + "tom")]

    def test_unknown_individual_is_a_thing(self, zoo_world, zoo_entities):
        """Test an entity missing from the World defaults to Thing."""
        from core.model import THING, Individual
        from reasoners.owlready_reasoner import HermitReasoner

        zoo_entities[Individual(B + "ghost")] = None

        taxonomy = HermitReasoner()._extract(zoo_world, zoo_entities, {})

        assert taxonomy.types[B + "ghost"] == {THING}
