"""Automaton to regular expression, by depth-first traversal.

The walk starts at the start state and follows every outgoing transition.
When it steps onto a state that is already on the current path it stops and
reports a loop fragment instead. On the way back up, each state prepends the
text that led into it to the fragments passing through, and the state a loop
fragment names folds it into a Kleene star. What reaches the start state is a
regex for every path that ends at an accepting state.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .automata import AutomatonError
from .config import SynthesisConfig
from .formatting import format_alternate, format_repeat
from .graph import EPSILON, State, Transition

logger = logging.getLogger(__name__)


class SynthesisError(AutomatonError):
    """Synthesis stopped without producing a regex."""


class UnsetTransitionError(SynthesisError):
    def __init__(self, state_name: str) -> None:
        super().__init__(f"unknown transition from {state_name}")
        self.state_name = state_name


class TraversalTooDeepError(SynthesisError):
    """A path from the start state is longer than the interpreter can recurse."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"automaton too deep to analyze (paths longer than about {limit} transitions)"
        )
        self.limit = limit


class UnconsumedLoopFragmentsError(SynthesisError):
    """Loop fragments were left over at the start state.

    Every fragment names a state on the path that produced it, so this means
    the traversal itself is broken, not the user's automaton.
    """

    def __init__(self, fragments: Sequence["LoopFragment"]) -> None:
        self.fragments = tuple(fragments)
        texts = ", ".join(fragment.fragment for fragment in self.fragments)
        super().__init__(
            f"regex analysis returned with loop fragments {texts} "
            "(internal error, please report it to the maintainers)"
        )


class _DeadEnd(Enum):
    DEAD_END = "dead-end"

    def __repr__(self) -> str:
        return "DEAD_END"


# No accepting state is reachable from here; distinct from the empty string.
DEAD_END = _DeadEnd.DEAD_END

Fragment = Union[str, _DeadEnd]


@dataclass(frozen=True)
class PathNode:
    """One step of the traversal path, linked back towards the start state.

    Nodes are never mutated, so sibling branches can share their parents.
    """

    transition: Transition
    parent: Optional["PathNode"] = None

    def leaves(self, state: State) -> bool:
        """True if some transition on the path starts at ``state``."""
        node: Optional[PathNode] = self
        while node is not None:
            if node.transition.source is state:
                return True
            node = node.parent
        return False


@dataclass(frozen=True)
class LoopFragment:
    fragment: str
    state: State


class RegexSynthesizer:
    def __init__(self, config: Optional[SynthesisConfig] = None) -> None:
        self.config = config or SynthesisConfig()

    def synthesize(self, start: State) -> str:
        """Return a regex for the language accepted from ``start``.

        Raises :class:`UnsetTransitionError` when a reachable transition has no
        label, :class:`UnconsumedLoopFragmentsError` if loop bookkeeping
        goes wrong, and :class:`TraversalTooDeepError` when a path from
        ``start`` outgrows the interpreter recursion limit.
        """
        logger.debug("synthesizing regex from %s", start.display_name)
        try:
            fragment, loops = self._visit(start, None)
        except RecursionError:
            raise TraversalTooDeepError(sys.getrecursionlimit()) from None
        if loops:
            logger.error("unconsumed loop fragments: %r", loops)
            raise UnconsumedLoopFragmentsError(loops)
        if fragment is DEAD_END:
            logger.debug("no accepting state reachable from %s", start.display_name)
            return self.config.empty_symbol
        logger.debug("synthesized %r", fragment)
        return fragment

    def _label_text(self, transition: Transition) -> str:
        if transition.label is EPSILON:
            return self.config.epsilon_symbol
        return transition.label

    def _visit(
        self, state: State, path: Optional[PathNode]
    ) -> Tuple[Fragment, List[LoopFragment]]:
        out_edges = list(state.out_edges)
        if any(edge.is_unset for edge in out_edges):
            raise UnsetTransitionError(state.display_name)

        last_char = "" if path is None else self._label_text(path.transition)

        if path is not None and path.leaves(state):
            logger.debug("loop closes at %s via %r", state.display_name, last_char)
            return DEAD_END, [LoopFragment(last_char, state)]

        fragments: List[str] = []
        loop_fragments: List[LoopFragment] = []
        for edge in out_edges:
            fragment, child_loops = self._visit(edge.target, PathNode(edge, path))
            if fragment is not DEAD_END:
                fragments.append(fragment)
            loop_fragments = loop_fragments + child_loops

        closing = [lf.fragment for lf in loop_fragments if lf.state is state]
        pending = [lf for lf in loop_fragments if lf.state is not state]

        # entering this state, then cycling here any number of times
        current = last_char + format_repeat("|".join(closing))

        if not fragments:
            result: Fragment = current if state.accepting else DEAD_END
        elif self.config.brackets:
            result = current + format_alternate(fragments, optional=state.accepting)
        elif state.accepting:
            result = current + format_alternate(fragments + [self.config.epsilon_symbol])
        else:
            result = current + format_alternate(fragments)

        return result, [LoopFragment(current + lf.fragment, lf.state) for lf in pending]


def synthesize(start: State, config: Optional[SynthesisConfig] = None) -> str:
    return RegexSynthesizer(config).synthesize(start)
