from .analysis import AnalysisResult, analyze, analyze_graph
from .automata import AutomatonError, AutomatonValidationError, NFA
from .cli import build_session_from_payload, run
from .config import SynthesisConfig
from .formatting import compile_regex, format_alternate, format_repeat, regex_matches, to_pattern
from .graph import EPSILON, UNSET, State, StateGraph, Transition
from .synthesis import (
    DEAD_END,
    LoopFragment,
    RegexSynthesizer,
    SynthesisError,
    TraversalTooDeepError,
    UnconsumedLoopFragmentsError,
    UnsetTransitionError,
    synthesize,
)

__all__ = [
    "AnalysisResult",
    "AutomatonError",
    "AutomatonValidationError",
    "DEAD_END",
    "EPSILON",
    "LoopFragment",
    "NFA",
    "RegexSynthesizer",
    "State",
    "StateGraph",
    "SynthesisConfig",
    "SynthesisError",
    "Transition",
    "TraversalTooDeepError",
    "UNSET",
    "UnconsumedLoopFragmentsError",
    "UnsetTransitionError",
    "analyze",
    "analyze_graph",
    "build_session_from_payload",
    "compile_regex",
    "format_alternate",
    "format_repeat",
    "regex_matches",
    "run",
    "synthesize",
    "to_pattern",
]
