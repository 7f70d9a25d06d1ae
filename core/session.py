"""
Session facade.

One Session owns the ontology, its short-name signature, the prefix registry
and the active reasoner binding, and exposes short commands over them.
Commands print to the console and return their result; failures are caught
at the command boundary, printed as a single diagnostic line and turned into
a ``None`` (or ``False``) result. Mutations are computed and checked in full
before anything is added, so a failing command never leaves a partial edit.
"""

import logging
import re
from functools import wraps
from typing import Any, Dict, List, Optional, Tuple, Union

from config import get_config_loader
from reasoners.base import (
    ContradictoryCharacteristicError, InconsistentOntologyError, ReasoningError,
    UnsupportedProfileError,
)
from reasoners.registry import SelectedReasoner
from storage.base import StorageError
from storage.file_storage import FileStorage
from .console import Console
from .explanation import ExplanationOrchestrator
from .model import (
    CHARACTERISTICS, Axiom, DataProperty, Declaration, DifferentIndividuals, Entity,
    EntityKind, FunctionalDataProperty, Individual, ObjectPropertyCharacteristic, OWLClass,
    Ontology, PrefixRegistry, Signature, base_stem, make_entity,
)
from .parser import ManchesterParser, ParseError
from .reasoner import ReasonerAdapter
from .renderer import Renderer

logger = logging.getLogger(__name__)

SHORT_NAME = re.compile(r"^[A-Za-z_][\w\-]*$")
EXPLANATION_RULE = "--------------"


class SessionError(Exception):
    """A command was used out of order (e.g. before an ontology exists)."""
    pass


# Most specific first; ReasoningError catches the remaining reasoning failures
DIAGNOSTICS = (
    (ParseError, "PARSER ERROR"),
    (InconsistentOntologyError, "REASONING ERROR"),
    (UnsupportedProfileError, "PROFILE ERROR"),
    (ContradictoryCharacteristicError, "CHARACTERISTIC ERROR"),
    (ReasoningError, "REASONING ERROR"),
    (StorageError, "IO ERROR"),
    (SessionError, "SESSION ERROR"),
)
RECOVERABLE = tuple(error for error, _ in DIAGNOSTICS)


def command(default: Any = None):
    """Run a session method, reporting recoverable errors instead of raising."""

    def decorator(method):
        @wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except RECOVERABLE as e:
                self.report(e)
                return default

        return wrapper

    return decorator


def session_config() -> Dict[str, Any]:
    """Session settings from the environment-driven config loader."""
    loader = get_config_loader()
    return {
        'reasoner': loader.get_default_reasoner(),
        'save_format': loader.get_save_format(),
        'max_explanations': loader.get_max_explanations(),
        'java_memory': loader.get_java_memory(),
        'debug': loader.is_debug_mode(),
    }


class Session:
    """
    Process-level ontology editing and reasoning session.

    Args:
        config: Settings (see ``session_config``); read from the environment if not provided
        console: Output channel (stdout if not provided)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, console: Optional[Console] = None):
        self.config = dict(config) if config is not None else session_config()
        self.console = console or Console()
        self.storage = FileStorage({'save_format': self.config.get('save_format', 'xml')})
        try:
            self.selected = SelectedReasoner.from_name(self.config.get('reasoner', 'HERMIT'))
        except ValueError as e:
            logger.warning(f"⚠️  {str(e)}; using HERMIT")
            self.selected = SelectedReasoner.HERMIT

        self.ontology: Optional[Ontology] = None
        self.signature = Signature()
        self.prefixes = PrefixRegistry()
        self.renderer = Renderer(self.prefixes)
        self.parser = ManchesterParser(None, self.signature, self.prefixes)
        self.reasoner: Optional[ReasonerAdapter] = None

    def __repr__(self):
        return f"Session({self.ontology!r}, reasoner={self.selected.display_name})"

    # =========================================================================
    # Plumbing
    # =========================================================================

    def report(self, error: Exception):
        """Print the diagnostic line for a recovered error."""
        label = next(label for cls, label in DIAGNOSTICS if isinstance(error, cls))
        message = str(error)
        if isinstance(error, StorageError) and error.path and error.path not in message:
            message = f"{message} ({error.path})"
        logger.warning(f"{label}: {message}")
        self.console.line(f"{label}: {message}")

    def _require_ontology(self) -> Ontology:
        if self.ontology is None:
            raise SessionError("No ontology: create or load one first")
        return self.ontology

    def _require_reasoner(self) -> ReasonerAdapter:
        self._require_ontology()
        if self.reasoner is None:
            self._bind_reasoner(self.selected)
        return self.reasoner

    def _install(self, ontology: Ontology, signature: Signature, prefixes: PrefixRegistry):
        if self.reasoner is not None:
            self.reasoner.close()
            self.reasoner = None
        self.ontology = ontology
        self.signature = signature
        self.prefixes = prefixes
        self.renderer = Renderer(prefixes)
        self.parser.bind(ontology, signature, prefixes)
        self._bind_reasoner(self.selected)

    def _bind_reasoner(self, selected: SelectedReasoner):
        if self.reasoner is not None:
            self.reasoner.close()
        self.selected = selected
        self.reasoner = ReasonerAdapter(self.ontology, selected, self.parser, self.config)
        logger.info(f"Bound {selected} to {self.ontology.iri}")

    @property
    def iri(self) -> str:
        return self._require_ontology().iri

    def render(self, obj) -> str:
        return self.renderer.render(obj)

    # =========================================================================
    # Ontology lifecycle
    # =========================================================================

    @command()
    def create_ontology(self, iri: str) -> Ontology:
        """Start a fresh, empty ontology whose base IRI short names live under."""
        iri = iri.strip()
        if not iri:
            raise SessionError("An ontology IRI is required")
        ontology = Ontology(iri)
        self._install(ontology, Signature(), PrefixRegistry(iri))
        logger.info(f"Created ontology {iri}")
        return ontology

    @command()
    def load_ontology(self, path: str) -> Ontology:
        """Replace the session's ontology with the one stored at ``path``."""
        ontology, bindings = self.storage.load(path)
        prefixes = PrefixRegistry()
        base = base_stem(ontology.iri)
        for label, stem in bindings:
            if label and stem != base and label not in PrefixRegistry.DEFAULTS:
                prefixes.bind(label, stem)
        prefixes.set_base(ontology.iri)
        self._install(ontology, Signature.from_ontology(ontology), prefixes)
        logger.info(f"Loaded ontology {ontology.iri} from {path}")
        return ontology

    # Alias
    load_from_file = load_ontology

    @command()
    def save_ontology(self, path: str, format: Optional[str] = None) -> Dict[str, Any]:
        """Write the ontology to ``path``; the format follows the extension unless given."""
        ontology = self._require_ontology()
        result = self.storage.save(ontology, path, format=format, prefixes=self.prefixes.items())
        self.console.line(f"Saved <{ontology.iri}> to {result['path']} ({result['format']})")
        return result

    # =========================================================================
    # Declarations
    # =========================================================================

    def _declare(self, kind: EntityKind, names: str) -> List[Entity]:
        ontology = self._require_ontology()
        stem = base_stem(ontology.iri)
        planned = []
        for name in names.split():
            if not SHORT_NAME.match(name):
                raise ParseError(f"'{name}' is not a valid short name", names, names.find(name))
            planned.append((name, make_entity(kind, stem + name)))

        entities = []
        for name, entity in planned:
            self.signature.declare(name, kind, entity.iri)
            declaration = Declaration(entity)
            if ontology.add_axiom(declaration):
                self.console.line(self.render(declaration))
            entities.append(entity)
        return entities

    @command(default=[])
    def create_classes(self, names: str) -> List[Entity]:
        return self._declare(EntityKind.CLASS, names)

    @command(default=[])
    def create_object_properties(self, names: str) -> List[Entity]:
        return self._declare(EntityKind.OBJECT_PROPERTY, names)

    @command(default=[])
    def create_data_properties(self, names: str) -> List[Entity]:
        return self._declare(EntityKind.DATA_PROPERTY, names)

    @command(default=[])
    def create_individuals(self, names: str) -> List[Entity]:
        return self._declare(EntityKind.INDIVIDUAL, names)

    def create_class(self, name: str) -> Optional[Entity]:
        entities = self.create_classes(name)
        return entities[0] if entities else None

    def create_individual(self, name: str) -> Optional[Entity]:
        entities = self.create_individuals(name)
        return entities[0] if entities else None

    def create_data_property(self, name: str) -> Optional[Entity]:
        entities = self.create_data_properties(name)
        return entities[0] if entities else None

    @command()
    def create_object_property(self, name: str, transitive=False, symmetric=False,
                               reflexive=False) -> Optional[Entity]:
        """
        Declare an object property and give it characteristics in one step.

        Args:
            name: Short name of the property
            transitive: Make it transitive (truthy, e.g. 1)
            symmetric: Make it symmetric
            reflexive: Make it reflexive

        Returns:
            The declared property, or None if a characteristic was rejected
        """
        ontology = self._require_ontology()
        if not SHORT_NAME.match(name.strip()):
            raise ParseError(f"'{name}' is not a valid short name", name, 0)
        name = name.strip()
        prop = make_entity(EntityKind.OBJECT_PROPERTY, base_stem(ontology.iri) + name)
        wanted = [characteristic for characteristic, flag in
                  (("transitive", transitive), ("symmetric", symmetric), ("reflexive", reflexive))
                  if flag]

        backend = self._require_reasoner().backend
        accepted: List[Axiom] = []
        for characteristic in wanted:
            axiom = CHARACTERISTICS[characteristic](prop)
            backend.check_profile(axiom)
            backend.check_characteristic(ontology.axioms + accepted, axiom)
            accepted.append(axiom)

        self._declare(EntityKind.OBJECT_PROPERTY, name)
        ontology.add_axioms(accepted)
        return prop

    # =========================================================================
    # Axioms
    # =========================================================================

    def _check(self, axiom: Axiom):
        ontology = self._require_ontology()
        backend = self._require_reasoner().backend
        backend.check_profile(axiom)
        if isinstance(axiom, ObjectPropertyCharacteristic):
            backend.check_characteristic(ontology.axioms, axiom)
        backend.check_restrictions(ontology.axioms, axiom)

    def _add_with_declarations(self, axiom: Axiom) -> Axiom:
        ontology = self._require_ontology()
        self._check(axiom)
        stem = base_stem(ontology.iri)
        declarations = []
        for entity in sorted(axiom.signature(), key=lambda e: e.iri):
            if entity.is_builtin or ontology.is_declared(entity):
                continue
            declarations.append(Declaration(entity))
            if entity.iri.startswith(stem) and len(entity.iri) > len(stem):
                self.signature.declare(entity.iri[len(stem):], entity.kind, entity.iri)
        ontology.add_axioms(declarations)
        ontology.add_axiom(axiom)
        logger.debug(f"Added {self.render(axiom)} ({len(declarations)} new declarations)")
        return axiom

    @command()
    def create_axiom(self, text: str) -> Axiom:
        """
        Parse a Manchester-syntax axiom and add it.

        Names the ontology does not know yet are declared alongside the
        axiom, with their kind taken from where they occur.

        Returns:
            The added axiom, or None if it could not be parsed or was rejected
        """
        self._require_ontology()
        axiom = self.parser.parse_axiom(text, strict=False)
        return self._add_with_declarations(axiom)

    @command(default=False)
    def remove_axiom(self, text: str) -> bool:
        """Remove a logical axiom given in Manchester syntax."""
        ontology = self._require_ontology()
        axiom = self.parser.parse_axiom(text, strict=True)
        if not ontology.remove_axiom(axiom):
            self.console.line(f"Axiom not found: {self.render(axiom)}")
            return False
        logger.info(f"Removed {self.render(axiom)}")
        return True

    @command()
    def set_characteristic(self, prop: str, characteristic: str) -> Axiom:
        """
        Give a property one of the OWL characteristics.

        Raises (reported):
            ContradictoryCharacteristicError: If the property cannot also have it
            UnsupportedProfileError: If the selected profile forbids it
        """
        self._require_ontology()
        key = re.sub(r"[\s_\-]", "", characteristic).lower()
        entity = self.parser.parse_property(prop, strict=True)
        if isinstance(entity, DataProperty):
            if key != "functional":
                raise ContradictoryCharacteristicError(
                    f"Data property {prop} can only be Functional, not {characteristic}")
            axiom = FunctionalDataProperty(entity)
        else:
            cls = CHARACTERISTICS.get(key)
            if cls is None:
                raise ParseError(f"Unknown characteristic '{characteristic}'", characteristic, 0)
            axiom = cls(entity)
        self._check(axiom)
        self.ontology.add_axiom(axiom)
        return axiom

    def make_functional(self, prop: str):
        return self.set_characteristic(prop, "functional")

    def make_inverse_functional(self, prop: str):
        return self.set_characteristic(prop, "inverse-functional")

    def make_transitive(self, prop: str):
        return self.set_characteristic(prop, "transitive")

    def make_symmetric(self, prop: str):
        return self.set_characteristic(prop, "symmetric")

    def make_asymmetric(self, prop: str):
        return self.set_characteristic(prop, "asymmetric")

    def make_reflexive(self, prop: str):
        return self.set_characteristic(prop, "reflexive")

    def make_irreflexive(self, prop: str):
        return self.set_characteristic(prop, "irreflexive")

    @command()
    def different_individuals(self, names: str) -> Axiom:
        """Assert that the whitespace-separated individuals are pairwise different."""
        self._require_ontology()
        individuals = [self.parser.parse_individual(name, strict=False) for name in names.split()]
        if len(set(individuals)) < 2:
            raise ParseError("At least two different individuals are needed", names, 0)
        return self._add_with_declarations(DifferentIndividuals(frozenset(individuals)))

    # =========================================================================
    # Reasoner selection
    # =========================================================================

    @command(default=False)
    def set_reasoner(self, selected: Union[SelectedReasoner, str]) -> bool:
        """
        Switch the active reasoner and precompute the class hierarchy.

        An inconsistent ontology is reported but does not undo the switch.
        """
        if isinstance(selected, str):
            try:
                selected = SelectedReasoner.from_name(selected)
            except ValueError as e:
                raise SessionError(str(e))
        if self.ontology is None:
            self.selected = selected
            return True
        self._bind_reasoner(selected)
        try:
            self.reasoner.precompute()
        except InconsistentOntologyError as e:
            self.report(e)
        return True

    @command()
    def get_reasoner_name(self) -> str:
        self.console.line(self.selected.display_name)
        return self.selected.display_name

    @command()
    def get_owl_profile(self) -> str:
        self.console.line(self.selected.profile)
        return self.selected.profile

    # =========================================================================
    # Output
    # =========================================================================

    @command()
    def print_ontology_stats(self) -> Dict[str, int]:
        ontology = self._require_ontology()
        stats = {
            'classes': len(ontology.classes()),
            'object_properties': len(ontology.object_properties()),
            'data_properties': len(ontology.data_properties()),
            'individuals': len(ontology.individuals()),
            'axioms': ontology.axiom_count,
        }
        self.console.header(f"Ontology statistics for <{ontology.iri}>:")
        self.console.line(f"Number of classes: {stats['classes']}")
        self.console.line(f"Number of object properties: {stats['object_properties']}")
        self.console.line(f"Number of data properties: {stats['data_properties']}")
        self.console.line(f"Number of individuals: {stats['individuals']}")
        self.console.line(f"Number of axioms: {stats['axioms']}")
        self.console.blank()
        return stats

    @command()
    def print_ontology(self) -> List[str]:
        ontology = self._require_ontology()
        lines = self.renderer.render_all(ontology.axioms)
        self.console.block(f"Axioms in <{ontology.iri}>:", lines)
        return lines

    # =========================================================================
    # Queries
    # =========================================================================

    def _names(self, entities) -> List[str]:
        return [self.render(entity) for entity in entities]

    @command()
    def is_consistent(self) -> bool:
        consistent = self._require_reasoner().is_consistent()
        if consistent:
            self.console.line(f"Yes - <{self.iri}> is consistent!")
        else:
            self.console.line(f"No - <{self.iri}> is INconsistent!")
        return consistent

    @command()
    def get_equivalent_classes(self, expression: str) -> List[OWLClass]:
        result = self._require_reasoner().get_equivalent_classes(expression)
        self.console.block(f"All equivalent classes of '{expression}'", self._names(result))
        return result

    @command()
    def get_sub_classes(self, expression: str) -> List[OWLClass]:
        result = self._require_reasoner().get_sub_classes(expression)
        self.console.block(f"All subclasses of '{expression}'", self._names(result))
        return result

    @command()
    def get_super_classes(self, expression: str) -> List[OWLClass]:
        result = self._require_reasoner().get_super_classes(expression)
        self.console.block(f"All superclasses of '{expression}'", self._names(result))
        return result

    @command()
    def get_unsatisfiable_classes(self) -> List[OWLClass]:
        result = self._require_reasoner().get_unsatisfiable_classes()
        self.console.block(f"All unsatisfiable classes in <{self.iri}>:", self._names(result))
        return result

    @command()
    def get_types(self, individual: str) -> List[OWLClass]:
        result = self._require_reasoner().get_types(individual)
        self.console.block(f"Types for individual: '{individual}'", self._names(result))
        return result

    @command()
    def get_all_types(self) -> List[Tuple[Individual, List[OWLClass]]]:
        result = self._require_reasoner().get_all_types()
        self.console.header(f"All Types in <{self.iri}>:")
        for individual, types in result:
            self.console.block(self.render(individual), self._names(types))
        self.console.blank()
        return result

    @command()
    def get_instances(self, expression: str) -> List[Individual]:
        result = self._require_reasoner().get_instances(expression)
        self.console.block(f"Individuals of: '{expression}'", self._names(result))
        return result

    @command()
    def get_object_property_values(self, prop: str) -> List[Tuple[Individual, Individual]]:
        result = self._require_reasoner().get_object_property_values(prop)
        self.console.block(f"Object Property Assertions for: {prop}",
                           [f"{self.render(s)},{self.render(o)}" for s, o in result])
        return result

    # Alias
    get_object_property_assertions = get_object_property_values

    @command()
    def get_all_object_property_assertions(self) -> Dict[str, List[Tuple[Individual, Individual]]]:
        reasoner = self._require_reasoner()
        result = {}
        for prop in self.ontology.object_properties():
            result[self.render(prop)] = reasoner.get_object_property_values(prop)
        self.console.header(f"All Object Property Assertions in <{self.iri}>:")
        for name, pairs in result.items():
            self.console.block(f"Object Property Assertions for: {name}",
                               [f"{self.render(s)},{self.render(o)}" for s, o in pairs])
        self.console.blank()
        return result

    @command()
    def is_entailed(self, text: str) -> bool:
        entailed = self._require_reasoner().is_entailed(text)
        verdict = "is entailed" if entailed else "is not entailed"
        self.console.line(f"{'Yes' if entailed else 'No'} - Axiom: '{text}' {verdict} by <{self.iri}>!")
        return entailed

    @command()
    def is_satisfiable(self, expression: str) -> bool:
        satisfiable = self._require_reasoner().is_satisfiable(expression)
        if satisfiable:
            self.console.line(f"Yes - Class: '{expression}' is satisfiable with respect to <{self.iri}>!")
        else:
            self.console.line(f"No - Class: '{expression}' is UNsatisfiable with respect to <{self.iri}>!")
        return satisfiable

    # =========================================================================
    # Explanations
    # =========================================================================

    def _orchestrator(self) -> ExplanationOrchestrator:
        return ExplanationOrchestrator(self._require_reasoner(),
                                       int(self.config.get('max_explanations') or 0))

    def print_explanation(self, justification: List[Axiom], index: int):
        self.console.line(f"Explanation {index}")
        self.console.line(EXPLANATION_RULE)
        for axiom in justification:
            self.console.line(self.render(axiom))
        self.console.blank()

    def _print_explanations(self, title: str, justifications: List[List[Axiom]]):
        self.console.header(title)
        self.console.blank()
        for index, justification in enumerate(justifications, 1):
            self.print_explanation(justification, index)

    @command()
    def explain_entailment(self, text: str) -> List[List[Axiom]]:
        justifications = list(self._orchestrator().explain_entailment(text))
        self._print_explanations(f"Explanation for entailment of '{text}':", justifications)
        return justifications

    @command()
    def explain_unsatisfiability(self, expression: str) -> List[List[Axiom]]:
        justifications = list(self._orchestrator().explain_unsatisfiability(expression))
        self._print_explanations(f"Explanation for unsatisfiability of '{expression}'",
                                 justifications)
        return justifications

    @command()
    def explain_inconsistency(self) -> List[List[Axiom]]:
        justifications = list(self._orchestrator().explain_inconsistency())
        self._print_explanations(f"Explanation for inconsistency of <{self.iri}>:", justifications)
        return justifications

    def close(self):
        """Release the reasoner binding."""
        if self.reasoner is not None:
            self.reasoner.close()
            self.reasoner = None


# Process-wide default session (initialized on first use)
_session = None


def get_session() -> Session:
    """Get or create the process-wide session."""
    global _session
    if _session is None:
        _session = Session()
        logger.info(f"✅ Session initialized with {_session.selected}")
    return _session


def reset_session() -> Session:
    """Discard the process-wide session and start a new one."""
    global _session
    if _session is not None:
        _session.close()
    _session = None
    return get_session()
