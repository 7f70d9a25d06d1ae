"""
Justification (explanation) computation.

A justification for an entailment is a minimal subset of the ontology's
logical axioms that still entails it. Single justifications are found by
black-box contraction; all of them are enumerated lazily with Reiter's
hitting-set tree, expanded breadth first, with early path termination and
justification reuse. Declarations are never part of a justification but are
always present while testing, so every subset stays well typed.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterator, List, Optional, Sequence, Set, FrozenSet, Union

from reasoners.base import ExplanationError, InconsistentOntologyError
from reasoners.entailment import EntailmentChecker
from .model import NOTHING_CLASS, THING_CLASS, Axiom, ClassExpression, SubClassOf
from .reasoner import ReasonerAdapter

logger = logging.getLogger(__name__)

Justification = List[Axiom]


class JustificationGenerator(ABC):
    """
    Lazy, finite, non-restartable enumeration of justifications.

    Args:
        axioms: Candidate axioms, in the order justifications are reported in
        fixed: Axioms present in every test but never reported
        limit: Stop after this many justifications (0 means no bound)
    """

    def __init__(self, axioms: Sequence[Axiom], fixed: Sequence[Axiom] = (), limit: int = 0):
        self.axioms = list(axioms)
        self.fixed = list(fixed)
        self.limit = limit
        self.tests = 0
        self._started = False

    @abstractmethod
    def holds(self, axioms: List[Axiom]) -> bool:
        """Whether the property being justified holds for ``axioms``."""
        pass

    def _test(self, subset: Set[Axiom]) -> bool:
        self.tests += 1
        return self.holds(self.fixed + [a for a in self.axioms if a in subset])

    def single(self, candidates: Set[Axiom]) -> Optional[FrozenSet[Axiom]]:
        """One justification within ``candidates``, or None if there is none."""
        if not self._test(candidates):
            return None
        kept = set(candidates)
        for axiom in self.axioms:
            if axiom not in kept:
                continue
            kept.discard(axiom)
            if not self._test(kept):
                kept.add(axiom)
        return frozenset(kept)

    def __iter__(self) -> Iterator[Justification]:
        if self._started:
            raise ExplanationError("Justification generators cannot be restarted")
        self._started = True
        return self._enumerate()

    def _enumerate(self) -> Iterator[Justification]:
        found: List[FrozenSet[Axiom]] = []
        closed: List[FrozenSet[Axiom]] = []
        seen: Set[FrozenSet[Axiom]] = set()
        everything = set(self.axioms)
        pending = deque([frozenset()])

        while pending:
            path = pending.popleft()
            if path in seen or any(done <= path for done in closed):
                continue
            seen.add(path)

            justification = next((j for j in found if not j & path), None)
            if justification is None:
                justification = self.single(everything - path)
                if justification is None:
                    closed.append(path)
                    continue
                found.append(justification)
                logger.debug(f"Justification {len(found)} has {len(justification)} axioms "
                             f"after {self.tests} tests")
                yield [a for a in self.axioms if a in justification]
                if self.limit and len(found) >= self.limit:
                    return

            for axiom in self.axioms:
                if axiom in justification:
                    pending.append(path | {axiom})


class EntailmentJustifications(JustificationGenerator):
    """Justifications for one axiom, using a back-end for each test."""

    def __init__(self, adapter: ReasonerAdapter, axiom: Axiom, axioms: Sequence[Axiom],
                 fixed: Sequence[Axiom] = (), limit: int = 0):
        super().__init__(axioms, fixed, limit)
        self.adapter = adapter
        self.axiom = axiom

    def holds(self, axioms: List[Axiom]) -> bool:
        checker = EntailmentChecker(self.adapter.backend, self.adapter.ontology.iri, axioms)
        if not checker.is_consistent():
            return True
        return checker.is_entailed(self.axiom)


class InconsistencyJustifications(JustificationGenerator):
    """
    Justifications for ``Thing SubClassOf Nothing``.

    The whole ontology is already inconsistent, so the test is consistency of
    the subset itself rather than an entailment check against it.
    """

    axiom = SubClassOf(THING_CLASS, NOTHING_CLASS)

    def __init__(self, adapter: ReasonerAdapter, axioms: Sequence[Axiom],
                 fixed: Sequence[Axiom] = (), limit: int = 0):
        super().__init__(axioms, fixed, limit)
        self.adapter = adapter

    def holds(self, axioms: List[Axiom]) -> bool:
        checker = EntailmentChecker(self.adapter.backend, self.adapter.ontology.iri, axioms)
        return not checker.is_consistent()


class ExplanationOrchestrator:
    """
    Drives the three justification scenarios against the active reasoner.

    Preconditions are checked eagerly when a method is called; the returned
    generator does the (possibly expensive) search lazily.
    """

    def __init__(self, adapter: ReasonerAdapter, limit: int = 0):
        self.adapter = adapter
        self.limit = limit

    def _partition(self):
        ontology = self.adapter.ontology
        return ontology.logical_axioms(), ontology.declarations()

    def explain_entailment(self, axiom: Union[str, Axiom]) -> EntailmentJustifications:
        """
        Enumerate justifications for an entailed axiom.

        Args:
            axiom: Axiom object or Manchester-syntax text

        Returns:
            Generator of justifications; empty when the axiom is not entailed

        Raises:
            InconsistentOntologyError: If the ontology is inconsistent
            ParseError: If the text does not parse
        """
        if isinstance(axiom, str):
            axiom = self.adapter.parser.parse_axiom(axiom, strict=True)
        if not self.adapter.is_consistent():
            raise InconsistentOntologyError(self.adapter.ontology.iri, "Explaining entailments")
        axioms, declarations = self._partition()
        return EntailmentJustifications(self.adapter, axiom, axioms, declarations, self.limit)

    def explain_unsatisfiability(self, expression: Union[str, ClassExpression]) -> EntailmentJustifications:
        """
        Enumerate justifications for ``expression SubClassOf Nothing``.

        Raises:
            InconsistentOntologyError: If the ontology is inconsistent
            ExplanationError: If the expression is satisfiable
        """
        if isinstance(expression, str):
            text = expression
            expression = self.adapter.parser.parse_class_expression(expression, strict=True)
        else:
            text = repr(expression)
        if not self.adapter.is_consistent():
            raise InconsistentOntologyError(self.adapter.ontology.iri,
                                            "Explaining unsatisfiability")
        if self.adapter.is_satisfiable(expression):
            raise ExplanationError(f"{text} is not unsatisfiable")
        axioms, declarations = self._partition()
        return EntailmentJustifications(self.adapter, SubClassOf(expression, NOTHING_CLASS),
                                        axioms, declarations, self.limit)

    def explain_inconsistency(self) -> InconsistencyJustifications:
        """
        Enumerate the minimal inconsistent subsets of the ontology.

        Raises:
            ExplanationError: If the ontology is consistent
        """
        if self.adapter.is_consistent():
            raise ExplanationError(f"{self.adapter.ontology.iri} is not inconsistent")
        axioms, declarations = self._partition()
        return InconsistencyJustifications(self.adapter, axioms, declarations, self.limit)
