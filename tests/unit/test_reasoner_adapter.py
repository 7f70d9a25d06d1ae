"""
Unit Tests for the Reasoner Adapter

Tests the binding state machine, flush-on-query and result filtering, using
the EL back-end so no Java runtime is needed.
"""

import pytest

B = "http://t/o1#"


@pytest.fixture
def adapter(animals, parser):
    """EL adapter over the animals ontology."""
    from core.reasoner import ReasonerAdapter
    from reasoners.registry import SelectedReasoner

    ontology, _, _, _ = animals
    adapter = ReasonerAdapter(ontology, SelectedReasoner.EL, parser)
    yield adapter
    adapter.close()


def names(entities):
    return [entity.iri[len(B):] for entity in entities]


@pytest.mark.unit
class TestBindingStates:
    """Test the binding lifecycle."""

    def test_starts_unbound(self, adapter):
        """Test a new binding has not classified yet."""
        from core.reasoner import BindingState

        assert adapter.state is BindingState.UNBOUND

    def test_precompute_makes_it_fresh(self, adapter):
        """Test precomputation classifies the ontology."""
        from core.reasoner import BindingState

        adapter.precompute()

        assert adapter.state is BindingState.BOUND_FRESH

    def test_mutation_is_seen_by_next_query(self, adapter, animals):
        """Test a query after an edit answers against the edited ontology."""
        from core.model import Declaration, OWLClass, SubClassOf

        ontology, signature, _, classes = animals
        adapter.precompute()
        assert "Kitten" not in names(adapter.get_sub_classes("Cat"))

        kitten = OWLClass(B + "Kitten")
        signature.declare("Kitten", kitten.kind, kitten.iri)
        ontology.add_axiom(Declaration(kitten))
        ontology.add_axiom(SubClassOf(kitten, classes["Cat"]))

        assert names(adapter.get_sub_classes("Cat")) == ["Kitten"]

    def test_unchanged_ontology_is_not_reclassified(self, adapter):
        """Test flush is a no-op while the revision is unchanged."""
        adapter.precompute()
        checker = adapter.checker

        assert adapter.checker is checker

    def test_inconsistent_state(self, adapter, animals):
        """Test inconsistency blocks every query except is_consistent."""
        from core.model import ClassAssertion, DisjointClasses, Individual
        from core.reasoner import BindingState
        from reasoners.base import InconsistentOntologyError

        ontology, _, _, classes = animals
        felix = Individual(B + "felix")
        ontology.add_axiom(DisjointClasses(frozenset([classes["Cat"], classes["Dog"]])))
        ontology.add_axiom(ClassAssertion(classes["Cat"], felix))
        ontology.add_axiom(ClassAssertion(classes["Dog"], felix))

        assert adapter.is_consistent() is False
        assert adapter.state is BindingState.BOUND_INCONSISTENT
        with pytest.raises(InconsistentOntologyError) as excinfo:
            adapter.get_super_classes("Cat")
        assert B in str(excinfo.value)
        with pytest.raises(InconsistentOntologyError):
            adapter.precompute()

    def test_repair_leaves_inconsistent_state(self, adapter, animals):
        """Test removing the culprit makes queries work again."""
        from core.model import ClassAssertion, DisjointClasses, Individual
        from core.reasoner import BindingState

        ontology, _, _, classes = animals
        felix = Individual(B + "felix")
        culprit = ClassAssertion(classes["Dog"], felix)
        ontology.add_axiom(DisjointClasses(frozenset([classes["Cat"], classes["Dog"]])))
        ontology.add_axiom(ClassAssertion(classes["Cat"], felix))
        ontology.add_axiom(culprit)
        assert adapter.is_consistent() is False

        ontology.remove_axiom(culprit)

        assert adapter.is_consistent() is True
        assert adapter.state is BindingState.BOUND_FRESH

    def test_failed_classification_is_retried(self, adapter, animals, monkeypatch):
        """Test a back-end failure leaves the binding to be classified again."""
        from core.model import Declaration, OWLClass
        from core.reasoner import BindingState
        from reasoners.base import ReasoningError

        ontology, _, _, _ = animals
        classify = adapter.backend.classify
        failures = [ReasoningError("HERMIT could not be started")]

        def flaky(*args, **kwargs):
            if failures:
                raise failures.pop()
            return classify(*args, **kwargs)

        adapter.precompute()
        ontology.add_axiom(Declaration(OWLClass(B + "Kitten")))
        monkeypatch.setattr(adapter.backend, "classify", flaky)

        with pytest.raises(ReasoningError):
            adapter.precompute()
        assert adapter.state is BindingState.BOUND_DIRTY

        adapter.precompute()
        assert adapter.state is BindingState.BOUND_FRESH
        taxonomy, _ = adapter.checker.classify()
        assert B + "Kitten" in taxonomy


@pytest.mark.unit
class TestQueries:
    """Test query results and filtering."""

    def test_super_classes_exclude_top(self, adapter):
        """Test Thing never appears in results."""
        assert set(names(adapter.get_super_classes("Cat"))) == {"Mammal", "Animal"}

    def test_sub_classes_exclude_bottom(self, adapter):
        """Test Nothing never appears in results."""
        assert set(names(adapter.get_sub_classes("Animal"))) == {"Mammal", "Cat", "Dog"}

    def test_results_follow_declaration_order(self, adapter):
        """Test results are listed in the order classes were declared."""
        assert names(adapter.get_sub_classes("Animal")) == ["Mammal", "Cat", "Dog"]

    def test_equivalent_classes_of_expression(self, adapter):
        """Test an anonymous expression is classified through a query class."""
        assert names(adapter.get_equivalent_classes("Cat and Animal")) == ["Cat"]

    def test_super_classes_of_expression(self, adapter):
        """Test superclasses of an anonymous expression."""
        assert set(names(adapter.get_super_classes("Cat and Dog"))) == {"Cat", "Dog", "Mammal", "Animal"}

    def test_unknown_name_is_a_parse_error(self, adapter):
        """Test queries are parsed strictly."""
        from core.parser import ParseError

        with pytest.raises(ParseError):
            adapter.get_sub_classes("Unicorn")

    def test_satisfiability(self, adapter, animals):
        """Test is_satisfiable and get_unsatisfiable_classes."""
        from core.model import DisjointClasses

        ontology, _, _, classes = animals
        assert adapter.is_satisfiable("Cat and Dog") is True

        ontology.add_axiom(DisjointClasses(frozenset([classes["Cat"], classes["Dog"]])))

        assert adapter.is_satisfiable("Cat and Dog") is False
        assert adapter.is_satisfiable("Thing") is True
        assert adapter.get_unsatisfiable_classes() == []

    def test_entailment(self, adapter):
        """Test inferred and non-inferred axioms."""
        assert adapter.is_entailed("Cat SubClassOf Animal") is True
        assert adapter.is_entailed("Animal SubClassOf Cat") is False

    def test_instances_and_types(self, adapter, animals):
        """Test ABox queries."""
        from core.model import ClassAssertion, Declaration, Individual

        ontology, signature, _, classes = animals
        felix = Individual(B + "felix")
        signature.declare("felix", felix.kind, felix.iri)
        ontology.add_axiom(Declaration(felix))
        ontology.add_axiom(ClassAssertion(classes["Cat"], felix))

        assert names(adapter.get_types("felix")) == ["Animal", "Mammal", "Cat"]
        assert names(adapter.get_instances("Mammal")) == ["felix"]
        assert adapter.get_instances("Dog") == []
        assert adapter.is_entailed("felix Type Animal") is True

    def test_object_property_values(self, adapter, animals):
        """Test property values come back as individual pairs."""
        from core.model import Declaration, Individual, ObjectProperty, ObjectPropertyAssertion

        ontology, signature, _, _ = animals
        chases = ObjectProperty(B + "chases")
        tom, jerry = Individual(B + "tom"), Individual(B + "jerry")
        for name, entity in (("chases", chases), ("tom", tom), ("jerry", jerry)):
            signature.declare(name, entity.kind, entity.iri)
            ontology.add_axiom(Declaration(entity))
        ontology.add_axiom(ObjectPropertyAssertion(chases, tom, jerry))

        assert adapter.get_object_property_values("chases") == [(tom, jerry)]
