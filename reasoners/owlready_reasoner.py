"""
OWL 2 DL back-ends running HermiT and Pellet through owlready2.

Each classification serialises the axioms to RDF/XML with rdflib, loads them
into a private owlready2 World, runs the tableau reasoner on it and reads the
inferred hierarchy, types and property values back out. The World is closed
afterwards, so no reasoner state survives between calls.
"""

import io
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

import owlready2
from owlready2 import (
    OwlReadyInconsistentOntologyError, OwlReadyJavaError, ThingClass, World,
    sync_reasoner_hermit, sync_reasoner_pellet,
)

from core.model import (
    NOTHING, THING, Axiom, ClassExpression, Declaration, EntityKind, EquivalentClasses,
    OWLClass,
)
from storage.rdf_mapping import OntologyGraphWriter
from .base import InconsistentOntologyError, ReasonerBackend, ReasoningError, Taxonomy


class OwlreadyReasoner(ReasonerBackend):
    """
    Base for the owlready2-hosted tableau reasoners.

    Config keys:
        java_memory: Heap size in MB handed to the Java VM
        debug: Keep owlready2's reasoner output
    """

    profile = "OWL 2 DL"
    engine = None

    def __init__(self, config: Optional[Dict] = None):
        super().__init__(config)
        memory = self.config.get('java_memory')
        if memory:
            owlready2.reasoning.JAVA_MEMORY = int(memory)
        self.debug = 1 if self.config.get('debug') else 0

    def _sync(self, world: World):
        raise NotImplementedError

    def classify(self, ontology_iri: str, axioms: Iterable[Axiom],
                 queries: Optional[Mapping[str, ClassExpression]] = None) -> Taxonomy:
        axioms = list(axioms)
        queries = queries or {}
        extra: List[Axiom] = []
        for query_iri, expression in queries.items():
            extra.append(Declaration(OWLClass(query_iri)))
            extra.append(EquivalentClasses(frozenset([OWLClass(query_iri), expression])))

        # every entity must be declared for the RDF reading to type it
        entities: Dict = {}
        for axiom in axioms + extra:
            for entity in axiom.signature():
                if not entity.is_builtin:
                    entities.setdefault(entity, None)
        declarations = [Declaration(entity) for entity in entities]

        graph = OntologyGraphWriter().write(ontology_iri, declarations + axioms + extra)
        data = graph.serialize(format='xml', encoding='utf-8')

        world = World()
        try:
            world.get_ontology(ontology_iri).load(fileobj=io.BytesIO(data))
            self.logger.debug(f"Running {self.name} on {len(axioms)} axioms of {ontology_iri}")
            self._sync(world)
            return self._extract(world, entities, queries)
        except OwlReadyInconsistentOntologyError:
            raise InconsistentOntologyError(ontology_iri)
        except OwlReadyJavaError as e:
            raise ReasoningError(f"{self.name} failed on {ontology_iri}: {str(e)}")
        except OSError as e:
            raise ReasoningError(f"{self.name} could not be started (is Java installed?): {str(e)}")
        finally:
            world.close()

    def _extract(self, world: World, entities: Mapping, queries: Mapping[str, ClassExpression]) -> Taxonomy:
        classes = [e.iri for e in entities if e.kind is EntityKind.CLASS]
        individuals = [e.iri for e in entities if e.kind is EntityKind.INDIVIDUAL]
        properties = [e.iri for e in entities if e.kind is EntityKind.OBJECT_PROPERTY]

        edges: Dict[str, Set[str]] = defaultdict(set)
        for iri in classes:
            cls = world[iri]
            if cls is None:
                continue
            for parent in list(cls.is_a) + list(cls.equivalent_to):
                if isinstance(parent, ThingClass):
                    edges[iri].add(parent.iri)
            for other in cls.equivalent_to:
                if isinstance(other, ThingClass):
                    edges[other.iri].add(iri)
        for cls in world.inconsistent_classes():
            edges[cls.iri].add(NOTHING)

        def reachable(start: Iterable[str]) -> Set[str]:
            seen = set(start)
            pending = list(seen)
            while pending:
                for parent in edges.get(pending.pop(), ()):
                    if parent not in seen:
                        seen.add(parent)
                        pending.append(parent)
            return seen

        subsumers = {iri: reachable([iri]) for iri in classes}
        types = {}
        for iri in individuals:
            individual = world[iri]
            if individual is None:
                types[iri] = {THING}
                continue
            direct = [c.iri for c in individual.is_a if isinstance(c, ThingClass)]
            types[iri] = reachable(direct)

        known = set(individuals)
        relations: Dict[str, Set[Tuple[str, str]]] = defaultdict(set)
        for iri in properties:
            prop = world[iri]
            if prop is None:
                continue
            for subject, value in prop.get_relations():
                subject_iri = getattr(subject, "iri", None)
                value_iri = getattr(value, "iri", None)
                if subject_iri in known and value_iri in known:
                    relations[iri].add((subject_iri, value_iri))

        return Taxonomy(classes, subsumers, types, dict(relations))


class HermitReasoner(OwlreadyReasoner):
    """HermiT hypertableau reasoner."""

    name = "HERMIT"
    engine = "hermit"

    def _sync(self, world: World):
        sync_reasoner_hermit(world, infer_property_values=True, debug=self.debug)


class PelletReasoner(OwlreadyReasoner):
    """Pellet tableau reasoner."""

    name = "PELLET"
    engine = "pellet"

    def _sync(self, world: World):
        sync_reasoner_pellet(world, infer_property_values=True,
                             infer_data_property_values=True, debug=self.debug)
