from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .automata import NFA
from .config import SynthesisConfig
from .formatting import compile_regex
from .graph import State, StateGraph
from .synthesis import (
    RegexSynthesizer,
    TraversalTooDeepError,
    UnconsumedLoopFragmentsError,
    UnsetTransitionError,
)

MISSING_START_MESSAGE = "Error: starting state does not exist"


@dataclass(frozen=True)
class AnalysisResult:
    regex: Optional[str] = None
    error: Optional[str] = None
    internal: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def analyze(graph: StateGraph, config: Optional[SynthesisConfig] = None) -> AnalysisResult:
    """Synthesize a regex for ``graph`` and turn failures into messages."""
    start = graph.start_state
    if start is None:
        return AnalysisResult(error=MISSING_START_MESSAGE)
    try:
        regex = RegexSynthesizer(config).synthesize(start)
    except (UnsetTransitionError, TraversalTooDeepError) as exc:
        return AnalysisResult(error=f"Error: {exc}")
    except UnconsumedLoopFragmentsError as exc:
        return AnalysisResult(error=f"Error: {exc}", internal=True)
    return AnalysisResult(regex=regex)


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    tokens: Tuple[str, ...]
    expected: bool
    label: str = ""

    @staticmethod
    def from_raw(raw_tokens: Iterable[str] | str, expected: bool, label: str = "") -> "TestCase":
        return TestCase(tokens=tuple(raw_tokens), expected=expected, label=label)


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    case: TestCase
    automaton_accepts: bool
    regex_accepts: bool

    @property
    def agrees(self) -> bool:
        return self.automaton_accepts == self.regex_accepts

    @property
    def passed(self) -> bool:
        return self.agrees and self.automaton_accepts == self.case.expected


def run_test_cases(
    nfa: NFA,
    regex: str,
    test_cases: Sequence[TestCase],
    config: Optional[SynthesisConfig] = None,
) -> List[TestResult]:
    pattern = compile_regex(regex, config)
    results: List[TestResult] = []
    for case in test_cases:
        results.append(
            TestResult(
                case=case,
                automaton_accepts=nfa.accepts(case.tokens),
                regex_accepts=pattern.fullmatch("".join(case.tokens)) is not None,
            )
        )
    return results


def summarize_results(results: Sequence[TestResult]) -> dict[str, int]:
    summary = {"total": len(results), "passed": 0, "failed": 0, "disagreements": 0}
    for result in results:
        if result.passed:
            summary["passed"] += 1
        else:
            summary["failed"] += 1
        if not result.agrees:
            summary["disagreements"] += 1
    return summary


def analyze_graph(graph: StateGraph) -> Dict[str, object]:
    states = graph.states
    transitions = graph.transitions

    reachable: Set[int] = set()
    if graph.start_state is not None:
        queue: deque[State] = deque([graph.start_state])
        while queue:
            state = queue.popleft()
            if id(state) in reachable:
                continue
            reachable.add(id(state))
            for edge in state.out_edges:
                if id(edge.target) not in reachable:
                    queue.append(edge.target)

    alive: Set[int] = set()
    pending: deque[State] = deque(state for state in states if state.accepting)
    while pending:
        state = pending.popleft()
        if id(state) in alive:
            continue
        alive.add(id(state))
        for edge in state.in_edges:
            if id(edge.source) not in alive:
                pending.append(edge.source)

    report: Dict[str, object] = {
        "state_count": len(states),
        "transition_count": len(transitions),
        "has_start": graph.start_state is not None,
        "reachable_count": len(reachable),
        "unreachable": [s.display_name for s in states if id(s) not in reachable],
        "dead_states": [s.display_name for s in states if id(s) not in alive],
        "unset_transitions": [
            (edge.source.display_name, edge.target.display_name)
            for edge in transitions
            if edge.is_unset
        ],
        "accepting": [s.display_name for s in states if s.accepting],
        "alphabet": graph.alphabet,
        "has_epsilon": any(edge.is_epsilon for edge in transitions),
    }
    return report
