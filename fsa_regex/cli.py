from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .analysis import (
    AnalysisResult,
    TestCase,
    TestResult,
    analyze,
    analyze_graph,
    run_test_cases,
    summarize_results,
)
from .automata import AutomatonError, NFA
from .config import OPTIONAL_STYLES, SynthesisConfig
from .graph import StateGraph
from .graphviz import write_dot

logger = logging.getLogger(__name__)

TOKEN_SPLIT_RE = re.compile(r"[\s,]+")
EMPTY_INPUT_LABEL = "<empty>"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_INTERNAL_ERROR = 2


@dataclass
class Session:
    graph: StateGraph
    config: SynthesisConfig = field(default_factory=SynthesisConfig)
    test_cases: List[TestCase] = field(default_factory=list)
    _cached_nfa: Optional[NFA] = field(default=None, init=False, repr=False)

    def nfa(self) -> NFA:
        if self._cached_nfa is None:
            self._cached_nfa = self.graph.to_nfa()
        return self._cached_nfa


def build_session_from_payload(
    payload: Mapping[str, Any], overrides: Optional[Mapping[str, Optional[str]]] = None
) -> Session:
    if not isinstance(payload, Mapping):
        raise ValueError("Config payload must be a mapping.")
    config = SynthesisConfig.from_payload(payload.get("config"))
    if overrides:
        config = config.with_overrides(**overrides)
    graph = StateGraph.from_payload(
        payload, epsilon_symbol=config.epsilon_symbol, empty_symbol=config.empty_symbol
    )
    test_cases = _load_test_cases_from_payload(payload.get("test_cases"))
    return Session(graph=graph, config=config, test_cases=test_cases)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Derive a regular expression from a finite-state automaton."
    )
    parser.add_argument("--config", required=True, help="Path to a JSON file that defines the automaton.")
    parser.add_argument(
        "--tests",
        help="Optional JSON file containing additional test cases to execute.",
    )
    parser.add_argument(
        "--output-dir",
        default="artifacts",
        help="Directory where the DOT graph file will be written.",
    )
    parser.add_argument(
        "--base-name",
        default="automaton",
        help="Base filename used for the generated DOT file.",
    )
    parser.add_argument("--no-dot", action="store_true", help="Do not write a DOT file.")
    parser.add_argument("--epsilon-symbol", help="Literal used for epsilon in the regex.")
    parser.add_argument("--empty-symbol", help="Literal used when no string is accepted.")
    parser.add_argument(
        "--optional-style",
        choices=OPTIONAL_STYLES,
        help="How an accepting state with outgoing paths is written.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log traversal details.")
    return parser.parse_args(argv)


def run(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)
    try:
        session = _build_session(args)
    except (
        AutomatonError,
        ValueError,
        FileNotFoundError,
        json.JSONDecodeError,
    ) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USER_ERROR

    _display_summary(session)
    _display_report(session)
    result = analyze(session.graph, session.config)
    if result.internal:
        logger.error("synthesis invariant broken: %s", result.error)
        print(result.error, file=sys.stderr)
        return EXIT_INTERNAL_ERROR
    if not result.ok:
        print(result.error, file=sys.stderr)
        code = EXIT_USER_ERROR
    else:
        print(f"\nRegular expression: {result.regex}")
        code = EXIT_OK if _run_tests(session, result) else EXIT_USER_ERROR

    if not args.no_dot:
        path = write_graph_for_session(session, args.output_dir, args.base_name, result)
        print(f"\nDOT file written:\n  {path}")
    return code


def _build_session(args: argparse.Namespace) -> Session:
    overrides = {
        "epsilon_symbol": args.epsilon_symbol,
        "empty_symbol": args.empty_symbol,
        "optional_style": args.optional_style,
    }
    session = _build_from_config(Path(args.config), overrides)
    if args.tests:
        session.test_cases.extend(_load_test_cases_from_file(Path(args.tests)))
    return session


def _build_from_config(path: Path, overrides: Mapping[str, Optional[str]]) -> Session:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError("Config file must define a JSON object.")
    logger.debug("loaded automaton from %s", path)
    return build_session_from_payload(payload, overrides)


def _display_summary(session: Session) -> None:
    graph = session.graph
    print("Automaton Summary")
    print(f"  States: {', '.join(state.display_name for state in graph.states) or '<none>'}")
    print(f"  Alphabet: {', '.join(graph.alphabet) or '<empty>'}")
    start = graph.start_state
    print(f"  Start state: {start.display_name if start is not None else '<none>'}")
    accepting = [state.display_name for state in graph.states if state.accepting]
    print(f"  Accept states: {', '.join(accepting) or '<none>'}")
    print("  Transitions:")
    for state in graph.states:
        parts: List[str] = []
        for edge in state.out_edges:
            if edge.is_unset:
                label = "?"
            elif edge.is_epsilon:
                label = session.config.epsilon_symbol
            else:
                label = edge.label
            parts.append(f"{label}->{edge.target.display_name}")
        print(f"    {state.display_name}: {', '.join(parts) or '<none>'}")


def _display_report(session: Session) -> None:
    report = analyze_graph(session.graph)
    print("\nStructure")
    print(f"  Reachable states: {report['reachable_count']} of {report['state_count']}")
    if report["unreachable"]:
        print(f"  Unreachable: {', '.join(report['unreachable'])}")
    if report["dead_states"]:
        print(f"  Dead states: {', '.join(report['dead_states'])}")
    for source, target in report["unset_transitions"]:
        print(f"  Unlabelled transition: {source} -> {target}")


def _run_tests(session: Session, result: AnalysisResult) -> bool:
    if not session.test_cases:
        print("\nNo test cases were provided.")
        return True
    print("\nRunning test cases...")
    try:
        nfa = session.nfa()
    except AutomatonError as exc:
        print(f"  Cannot simulate the automaton: {exc}", file=sys.stderr)
        return False
    try:
        results = run_test_cases(nfa, result.regex, session.test_cases, session.config)
    except re.error as exc:
        print(
            f"Error: cannot check the regex, labels collide with regex operators ({exc}).",
            file=sys.stderr,
        )
        return False
    summary = summarize_results(results)
    print(f"  Passed {summary['passed']} of {summary['total']} test cases.")
    for item in results:
        print(f"    {_describe_result(item)}")
    if summary["disagreements"]:
        logger.error("regex and automaton disagree on %d case(s)", summary["disagreements"])
    return summary["failed"] == 0


def _describe_result(result: TestResult) -> str:
    tokens_text = "".join(result.case.tokens) if result.case.tokens else EMPTY_INPUT_LABEL
    expected_text = "accept" if result.case.expected else "reject"
    actual_text = "accept" if result.automaton_accepts else "reject"
    status = "PASS" if result.passed else "FAIL"
    label_prefix = f"{result.case.label}: " if result.case.label else ""
    text = f"[{status}] {label_prefix}{tokens_text} -> expected {expected_text}, got {actual_text}"
    if not result.agrees:
        text += " (regex disagrees with automaton)"
    return text


def write_graph_for_session(
    session: Session,
    output_dir: Path | str,
    base_name: Optional[str],
    result: Optional[AnalysisResult] = None,
) -> Path:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    name = (base_name or "automaton").strip() or "automaton"
    path = out_dir / f"{name}.dot"
    write_dot(
        session.graph,
        str(path),
        epsilon_symbol=session.config.epsilon_symbol,
        regex=result.regex if result is not None else None,
    )
    return path.resolve()


def _load_test_cases_from_file(path: Path) -> List[TestCase]:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return _load_test_cases_from_payload(payload)


def _load_test_cases_from_payload(data: Any) -> List[TestCase]:
    if data is None:
        return []
    if isinstance(data, dict):
        entries = data.get("cases", [])
    else:
        entries = data
    if not isinstance(entries, list):
        raise ValueError("Test cases must be provided as a list.")
    cases: List[TestCase] = []
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValueError("Each test case must be an object with 'input' and 'expected'.")
        tokens = _normalize_test_case_tokens(entry.get("input", []))
        expected = bool(entry.get("expected", False))
        label = entry.get("label") or f"case {index}"
        cases.append(TestCase(tokens=tokens, expected=expected, label=label))
    return cases


def _normalize_test_case_tokens(raw_tokens: Any) -> Tuple[str, ...]:
    if isinstance(raw_tokens, str):
        raw = raw_tokens.strip()
        if TOKEN_SPLIT_RE.search(raw):
            return tuple(token for token in TOKEN_SPLIT_RE.split(raw) if token)
        return tuple(raw)
    if isinstance(raw_tokens, list):
        if not all(isinstance(token, str) for token in raw_tokens):
            raise ValueError("Test case symbols must be strings.")
        return tuple(raw_tokens)
    raise ValueError("Test case 'input' must be a string or a list of strings.")
