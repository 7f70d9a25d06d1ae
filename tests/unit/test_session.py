"""
Unit Tests for the Session Facade

Tests declarations, axiom editing, diagnostics and the console layout. The
sessions use the EL back-end except where a test only needs the DL
characteristic checks, which run without starting Java.
"""

import pytest

B = "http://t/o1#"


@pytest.mark.unit
class TestLifecycle:
    """Test ontology creation and reasoner binding."""

    def test_create_ontology_binds_base_prefix(self, session):
        """Test the empty prefix is the base IRI."""
        assert session.prefixes.base == B
        assert session.ontology.axiom_count == 0
        assert session.reasoner is not None

    def test_commands_need_an_ontology(self, session_factory, output):
        """Test a command before create_ontology is reported, not raised."""
        session = session_factory()

        assert session.create_classes("A") == []
        assert "SESSION ERROR" in output.getvalue()

    def test_recreate_discards_everything(self, animal_session):
        """Test a second create_ontology starts empty."""
        animal_session.create_ontology("http://t/other#")

        assert animal_session.ontology.axiom_count == 0
        assert "Cat" not in animal_session.signature

    def test_reasoner_records(self, session, output):
        """Test name and profile reporting."""
        assert session.get_reasoner_name() == "EL"
        assert session.get_owl_profile() == "OWL 2 EL"
        assert "OWL 2 EL" in output.getvalue()

    def test_set_unknown_reasoner(self, session, output):
        """Test an unknown reasoner name is reported."""
        assert session.set_reasoner("FACT") is False
        assert "Unknown reasoner 'FACT'" in output.getvalue()
        assert session.get_reasoner_name() == "EL"

    def test_set_reasoner_precomputes(self, animal_session):
        """Test switching classifies the ontology straight away."""
        from core.reasoner import BindingState

        assert animal_session.set_reasoner("el") is True
        assert animal_session.reasoner.state is BindingState.BOUND_FRESH

    def test_set_reasoner_on_inconsistent_ontology(self, pet_session, output):
        """Test inconsistency during precomputation is only a diagnostic."""
        pet_session.create_axiom("Cat DisjointWith Dog")
        pet_session.create_axiom("felix Type Dog")

        assert pet_session.set_reasoner("EL") is True
        assert "REASONING ERROR" in output.getvalue()

    def test_unknown_default_reasoner_falls_back(self, session_factory):
        """Test a bad configured reasoner name."""
        session = session_factory(reasoner='NOPE')

        assert session.selected.display_name == "HERMIT"


@pytest.mark.unit
class TestDeclarations:
    """Test the create_* commands."""

    def test_iri_is_base_plus_name(self, session):
        """Test declared IRIs concatenate base and short name."""
        from core.model import Declaration, EntityKind, OWLClass

        session.create_classes("Animal Cat")

        for name in ("Animal", "Cat"):
            assert session.signature.lookup(name, EntityKind.CLASS) == B + name
            assert Declaration(OWLClass(B + name)) in session.ontology

    def test_declarations_are_echoed(self, session, output):
        """Test each new declaration is printed."""
        session.create_classes("Animal")
        session.create_individuals("felix")
        session.create_object_properties("eats")
        session.create_data_properties("age")

        lines = output.getvalue().splitlines()
        assert lines == ["Class: Animal", "Individual: felix", "ObjectProperty: eats", "DataProperty: age"]

    def test_redeclaration_is_idempotent(self, session):
        """Test declaring a name twice changes nothing."""
        session.create_classes("Animal")
        revision = session.ontology.revision

        session.create_classes("Animal")

        assert len(session.signature) == 1
        assert session.ontology.axiom_count == 1
        assert session.ontology.revision == revision

    def test_one_name_two_kinds(self, session):
        """Test a class and an individual may share a short name."""
        session.create_classes("Rex")
        session.create_individuals("Rex")

        assert session.ontology.axiom_count == 2
        assert len(session.signature) == 2

    def test_invalid_name_declares_nothing(self, session, output):
        """Test a bad name rejects the whole command."""
        assert session.create_classes("Good Bad!Name") == []

        assert session.ontology.axiom_count == 0
        assert "PARSER ERROR" in output.getvalue()

    def test_single_entity_helpers(self, session):
        """Test the one-name shortcuts."""
        from core.model import Individual, OWLClass

        assert session.create_class("Cat") == OWLClass(B + "Cat")
        assert session.create_individual("felix") == Individual(B + "felix")


@pytest.mark.unit
class TestAxioms:
    """Test create_axiom and friends."""

    def test_create_axiom_adds_it(self, animal_session):
        """Test a parsed axiom lands in the ontology."""
        from core.model import OWLClass, SubClassOf

        assert SubClassOf(OWLClass(B + "Cat"), OWLClass(B + "Mammal")) in animal_session.ontology

    def test_new_names_are_declared(self, session):
        """Test unknown names in an axiom become declared entities."""
        from core.model import Declaration, EntityKind, Individual, OWLClass

        session.create_axiom("felix Type Cat")

        assert Declaration(OWLClass(B + "Cat")) in session.ontology
        assert Declaration(Individual(B + "felix")) in session.ontology
        assert session.signature.lookup("felix", EntityKind.INDIVIDUAL) == B + "felix"

    def test_parse_failure_reports_and_keeps_ontology(self, animal_session, output):
        """Test a malformed axiom is reported and not added."""
        count = animal_session.ontology.axiom_count

        assert animal_session.create_axiom("Invalid $#@! Syntax") is None

        assert "PARSER ERROR" in output.getvalue()
        assert "Invalid $#@! Syntax" in output.getvalue()
        assert animal_session.ontology.axiom_count == count

    def test_profile_violation_is_not_added(self, animal_session, output):
        """Test the EL back-end refuses negation without touching the ontology."""
        count = animal_session.ontology.axiom_count

        assert animal_session.create_axiom("Cat SubClassOf not Ghost") is None

        assert "PROFILE ERROR" in output.getvalue()
        assert animal_session.ontology.axiom_count == count
        assert "Ghost" not in animal_session.signature

    def test_remove_axiom(self, animal_session):
        """Test removal and its effect on reasoning."""
        assert animal_session.remove_axiom("Cat SubClassOf Mammal") is True
        assert animal_session.get_super_classes("Cat") == []

    def test_remove_missing_axiom(self, animal_session, output):
        """Test removing an axiom that is not there."""
        assert animal_session.remove_axiom("Cat SubClassOf Dog") is False
        assert "Axiom not found: Cat SubClassOf Dog" in output.getvalue()

    def test_different_individuals(self, session):
        """Test the pairwise-different axiom."""
        from core.model import DifferentIndividuals, Individual

        session.create_individuals("felix max")
        axiom = session.different_individuals("felix max")

        assert axiom == DifferentIndividuals(frozenset([Individual(B + "felix"), Individual(B + "max")]))
        assert axiom in session.ontology

    def test_different_individuals_needs_two(self, session, output):
        """Test a single individual is rejected."""
        assert session.different_individuals("felix") is None
        assert "PARSER ERROR" in output.getvalue()


@pytest.mark.unit
class TestCharacteristics:
    """Test property characteristics on a DL session (no Java needed for edits)."""

    @pytest.fixture
    def dl_session(self, session_factory):
        session = session_factory(reasoner='HERMIT')
        session.create_ontology(B)
        session.create_object_properties("partOf knows")
        session.create_data_properties("age")
        return session

    def test_transitive(self, dl_session):
        """Test a characteristic axiom is added."""
        from core.model import ObjectProperty, TransitiveObjectProperty

        axiom = dl_session.make_transitive("partOf")

        assert axiom == TransitiveObjectProperty(ObjectProperty(B + "partOf"))
        assert axiom in dl_session.ontology

    def test_transitive_and_functional_conflict(self, dl_session, output):
        """Test the simple-property restriction is enforced."""
        dl_session.make_transitive("partOf")
        count = dl_session.ontology.axiom_count

        assert dl_session.make_functional("partOf") is None

        assert "CHARACTERISTIC ERROR" in output.getvalue()
        assert dl_session.ontology.axiom_count == count

    def test_symmetric_and_asymmetric_conflict(self, dl_session, output):
        """Test directly contradictory characteristics."""
        dl_session.make_symmetric("knows")

        assert dl_session.make_asymmetric("knows") is None
        assert "CHARACTERISTIC ERROR" in output.getvalue()

    def test_cardinality_on_transitive_property(self, dl_session, output):
        """Test a non-simple property cannot be counted."""
        dl_session.make_transitive("partOf")

        assert dl_session.create_axiom("Hand SubClassOf partOf max 1 Arm") is None
        assert "CHARACTERISTIC ERROR" in output.getvalue()

    def test_data_property_only_functional(self, dl_session, output):
        """Test data properties accept Functional and nothing else."""
        from core.model import DataProperty, FunctionalDataProperty

        assert dl_session.make_functional("age") == FunctionalDataProperty(DataProperty(B + "age"))
        assert dl_session.make_transitive("age") is None
        assert "CHARACTERISTIC ERROR" in output.getvalue()

    def test_create_object_property_with_flags(self, dl_session):
        """Test the declare-and-characterise shortcut."""
        from core.model import (
            Declaration, ObjectProperty, SymmetricObjectProperty, TransitiveObjectProperty,
        )

        prop = dl_session.create_object_property("relatedTo", 1, 1, 0)

        assert prop == ObjectProperty(B + "relatedTo")
        assert Declaration(prop) in dl_session.ontology
        assert TransitiveObjectProperty(prop) in dl_session.ontology
        assert SymmetricObjectProperty(prop) in dl_session.ontology

    def test_unknown_characteristic(self, dl_session, output):
        """Test a misspelt characteristic."""
        assert dl_session.set_characteristic("partOf", "transitiv") is None
        assert "PARSER ERROR" in output.getvalue()

    def test_el_profile_rejects_functional(self, session, output):
        """Test the EL back-end refuses functionality."""
        session.create_object_properties("hasMother")

        assert session.make_functional("hasMother") is None
        assert "PROFILE ERROR" in output.getvalue()


@pytest.mark.unit
class TestOutputLayout:
    """Test the header / numbered list / blank line layout."""

    def test_query_block(self, animal_session, output):
        """Test an underlined header, numbered results and a blank line."""
        output.seek(0)
        output.truncate()

        animal_session.get_sub_classes("Animal")

        assert output.getvalue() == (
            "All subclasses of 'Animal'\n"
            "--------------------------\n"
            "1. Mammal\n"
            "2. Cat\n"
            "3. Dog\n"
            "\n"
        )

    def test_statistics(self, pet_session, output):
        """Test the statistics command."""
        stats = pet_session.print_ontology_stats()

        assert stats == {
            'classes': 4,
            'object_properties': 0,
            'data_properties': 0,
            'individuals': 2,
            'axioms': 11,
        }
        assert "Number of axioms: 11" in output.getvalue()

    def test_print_ontology(self, animal_session, output):
        """Test every axiom is listed."""
        lines = animal_session.print_ontology()

        assert "Cat SubClassOf Mammal" in lines
        assert "7. Mammal SubClassOf Animal" in output.getvalue()

    def test_consistency_lines(self, animal_session, output):
        """Test the yes/no consistency line names the ontology."""
        assert animal_session.is_consistent() is True
        assert f"Yes - <{B}> is consistent!" in output.getvalue()

    def test_entailment_line(self, animal_session, output):
        """Test the entailment verdict."""
        assert animal_session.is_entailed("Cat SubClassOf Animal") is True
        assert "Yes - Axiom: 'Cat SubClassOf Animal' is entailed" in output.getvalue()

    def test_explanation_blocks(self, animal_session, output):
        """Test justifications are numbered blocks."""
        animal_session.explain_entailment("Cat SubClassOf Animal")

        text = output.getvalue()
        assert "Explanation 1\n--------------\nCat SubClassOf Mammal\nMammal SubClassOf Animal\n" in text

    def test_query_with_unknown_name(self, animal_session, output):
        """Test strict parsing of query input."""
        assert animal_session.get_instances("Unicorn") is None
        assert "PARSER ERROR: Unknown class name 'Unicorn'" in output.getvalue()


@pytest.mark.unit
class TestInconsistentSession:
    """Test the reasoning-error diagnostic on an inconsistent ontology."""

    @pytest.fixture
    def clash(self, pet_session):
        pet_session.create_axiom("Cat DisjointWith Dog")
        pet_session.create_axiom("felix Type Dog")
        return pet_session

    def test_queries_report_reasoning_error(self, clash, output):
        """Test every query except is_consistent reports the ontology IRI."""
        assert clash.is_consistent() is False
        for query, argument in (("get_super_classes", "Cat"), ("get_sub_classes", "Animal"),
                                ("get_equivalent_classes", "Cat"), ("get_types", "felix"),
                                ("get_instances", "Cat"), ("is_satisfiable", "Cat"),
                                ("is_entailed", "Cat SubClassOf Animal")):
            assert getattr(clash, query)(argument) is None
        assert clash.get_unsatisfiable_classes() is None

        errors = [line for line in output.getvalue().splitlines() if line.startswith("REASONING ERROR:")]
        assert len(errors) == 8
        assert all(f"because <{B}> is inconsistent!" in line for line in errors)

    def test_inconsistency_is_explained(self, clash, output):
        """Test explain_inconsistency yields the clash."""
        justifications = clash.explain_inconsistency()

        assert len(justifications) == 1
        assert len(justifications[0]) == 3
        assert f"Explanation for inconsistency of <{B}>:" in output.getvalue()


@pytest.mark.unit
class TestNameResolution:
    """Test that names declared through the session are visible to queries."""

    def test_parser_shares_the_session_signature(self, session):
        """Test the parser reads the same signature the session declares into."""
        assert session.parser.signature is session.signature
        assert session.parser.prefixes is session.prefixes

    def test_query_after_fresh_ontology(self, session_factory, output):
        """Test create_ontology, create_classes and a strict query in sequence."""
        session = session_factory()
        session.create_ontology(B)
        session.create_classes("Animal Cat")
        session.create_axiom("Cat SubClassOf Animal")

        result = session.get_super_classes("Cat")

        assert [cls.iri for cls in result] == [B + "Animal"]
        assert "PARSER ERROR" not in output.getvalue()

    def test_names_survive_recreating_the_ontology(self, animal_session):
        """Test a second create_ontology rebinds the parser to the new signature."""
        animal_session.create_ontology("http://t/o2#")
        animal_session.create_classes("Bird")

        assert animal_session.is_satisfiable("Bird") is True


@pytest.mark.unit
class TestKeywordSpelledNames:
    """Test individuals whose names are also Manchester keywords."""

    def test_max_is_an_individual(self, pet_session):
        """Test max Type: Dog is asserted and retrieved."""
        from core.model import ClassAssertion, Individual, OWLClass

        assert ClassAssertion(OWLClass(B + "Dog"), Individual(B + "max")) in pet_session.ontology
        assert [i.iri for i in pet_session.get_instances("Mammal")] == [B + "felix", B + "max"]
        assert [c.iri for c in pet_session.get_types("max")] == [B + "Animal", B + "Mammal", B + "Dog"]

    def test_max_in_different_individuals(self, pet_session):
        """Test max can be listed among different individuals."""
        from core.model import DifferentIndividuals, Individual

        axiom = pet_session.different_individuals("felix max")

        assert axiom == DifferentIndividuals(frozenset([Individual(B + "felix"), Individual(B + "max")]))

    def test_other_keyword_names(self, session):
        """Test value and domain work as names once declared."""
        from core.model import ClassAssertion, Individual, OWLClass

        session.create_classes("value")
        session.create_individuals("domain")

        assert session.create_axiom("domain Type: value") == \
            ClassAssertion(OWLClass(B + "value"), Individual(B + "domain"))
