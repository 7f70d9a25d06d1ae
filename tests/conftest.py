"""
Pytest Configuration and Fixtures for ontolite Tests

This module provides shared fixtures and configuration for all tests.
"""

import io
import os
import sys
import pytest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment before importing the session
os.environ['ENVIRONMENT'] = 'test'

# Import after environment is set
from config.config_loader import load_ontolite_config

# Load test configuration
load_ontolite_config('test')


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def base_iri():
    """Base IRI used by the fixture ontologies."""
    return "http://t/o1#"


@pytest.fixture
def animals(base_iri):
    """Ontology, signature and prefixes for the Animal / Mammal / Cat / Dog hierarchy."""
    from core.model import (
        Declaration, EntityKind, Ontology, OWLClass, PrefixRegistry, Signature, SubClassOf,
    )

    ontology = Ontology(base_iri)
    signature = Signature()
    classes = {}
    for name in ("Animal", "Mammal", "Cat", "Dog"):
        classes[name] = OWLClass(base_iri + name)
        signature.declare(name, EntityKind.CLASS, base_iri + name)
        ontology.add_axiom(Declaration(classes[name]))
    ontology.add_axiom(SubClassOf(classes["Cat"], classes["Mammal"]))
    ontology.add_axiom(SubClassOf(classes["Dog"], classes["Mammal"]))
    ontology.add_axiom(SubClassOf(classes["Mammal"], classes["Animal"]))
    return ontology, signature, PrefixRegistry(base_iri), classes


@pytest.fixture
def parser(animals):
    """Manchester parser bound to the animals ontology."""
    from core.parser import ManchesterParser

    ontology, signature, prefixes, _ = animals
    return ManchesterParser(ontology, signature, prefixes)


@pytest.fixture
def el_backend():
    """Fresh EL back-end."""
    from reasoners.el_reasoner import ELReasoner

    return ELReasoner()


# =============================================================================
# Session Fixtures
# =============================================================================

@pytest.fixture
def output():
    """In-memory output channel."""
    return io.StringIO()


@pytest.fixture
def session_factory(output):
    """Build sessions that write to ``output`` and use the given reasoner."""
    from core.console import Console
    from core.session import Session

    created = []

    def factory(reasoner='EL', **overrides):
        config = {
            'reasoner': reasoner,
            'save_format': 'xml',
            'max_explanations': 0,
            'java_memory': 1000,
            'debug': False,
        }
        config.update(overrides)
        session = Session(config, Console(output))
        created.append(session)
        return session

    yield factory

    for session in created:
        session.close()


@pytest.fixture
def session(session_factory):
    """EL session with an empty ontology."""
    session = session_factory()
    session.create_ontology("http://t/o1#")
    return session


@pytest.fixture
def animal_session(session):
    """EL session holding the Animal / Mammal / Cat / Dog hierarchy."""
    session.create_classes("Animal Mammal Cat Dog")
    session.create_axiom("Cat subClassOf Mammal")
    session.create_axiom("Dog subClassOf Mammal")
    session.create_axiom("Mammal subClassOf Animal")
    return session


@pytest.fixture
def pet_session(animal_session):
    """The animal hierarchy plus the individuals felix (a Cat) and max (a Dog)."""
    animal_session.create_individuals("felix max")
    animal_session.create_axiom("felix Type: Cat")
    animal_session.create_axiom("max Type: Dog")
    return animal_session


# =============================================================================
# Utility Fixtures
# =============================================================================

@pytest.fixture
def temp_directory(tmp_path):
    """Provide temporary directory for test files."""
    test_dir = tmp_path / "ontolite_test"
    test_dir.mkdir()
    return test_dir


# =============================================================================
# Markers for Test Organization
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "java: marks tests that need a Java runtime for HermiT or Pellet"
    )
