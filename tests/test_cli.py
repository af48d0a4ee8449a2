"""Tests for the command line entry point and DOT output."""

import json

import pytest

from fsa_regex.cli import build_session_from_payload, run
from fsa_regex.graphviz import graph_to_dot
from fsa_regex.synthesis import LoopFragment, RegexSynthesizer

CYCLE = {
    "states": ["q0", "q1"],
    "start_state": "q0",
    "accept_states": ["q1"],
    "transitions": [
        {"from": "q0", "to": "q1", "label": "a"},
        {"from": "q1", "to": "q0", "label": "b"},
    ],
    "test_cases": [
        {"input": "aba", "expected": True, "label": "twice round"},
        {"input": "ab", "expected": False},
    ],
}


@pytest.fixture
def write_config(tmp_path):
    def write(payload, name="automaton.json"):
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    return write


def test_run_prints_regex_and_writes_dot(write_config, tmp_path, capsys):
    out_dir = tmp_path / "out"
    code = run(["--config", write_config(CYCLE), "--output-dir", str(out_dir), "--base-name", "cycle"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Regular expression: (ab)*a" in captured.out
    assert "Passed 2 of 2 test cases." in captured.out
    dot = (out_dir / "cycle.dot").read_text(encoding="utf-8")
    assert 'label="(ab)*a";' in dot
    assert "s0 -> s1" in dot


def test_run_with_extra_tests_file(write_config, tmp_path, capsys):
    tests = write_config({"cases": [{"input": "", "expected": True}]}, name="tests.json")
    code = run(["--config", write_config(CYCLE), "--tests", tests, "--no-dot"])
    captured = capsys.readouterr()
    assert code == 1
    assert "Passed 2 of 3 test cases." in captured.out
    assert "[FAIL] case 1: <empty> -> expected accept, got reject" in captured.out


def test_run_reports_unset_transition(write_config, capsys):
    payload = dict(CYCLE, transitions=[{"from": "q0", "to": "q1"}])
    code = run(["--config", write_config(payload), "--no-dot"])
    captured = capsys.readouterr()
    assert code == 1
    assert "Error: unknown transition from q0" in captured.err
    assert "Unlabelled transition: q0 -> q1" in captured.out


def test_run_reports_missing_start_state(write_config, capsys):
    payload = dict(CYCLE, start_state=None)
    code = run(["--config", write_config(payload), "--no-dot"])
    assert code == 1
    assert "starting state does not exist" in capsys.readouterr().err


def test_run_reports_bad_config(write_config, capsys):
    code = run(["--config", write_config({"states": "nope"})])
    assert code == 1
    assert "Error: Config field 'states'" in capsys.readouterr().err


def test_run_reports_operator_labels(write_config, capsys):
    payload = dict(
        CYCLE,
        transitions=[{"from": "q0", "to": "q1", "label": "("}],
        test_cases=[{"input": "(", "expected": True}],
    )
    code = run(["--config", write_config(payload), "--no-dot"])
    captured = capsys.readouterr()
    assert code == 1
    assert "Regular expression: (" in captured.out
    assert "labels collide with regex operators" in captured.err


def test_run_refuses_empty_language_label(write_config, capsys):
    payload = dict(CYCLE, transitions=[{"from": "q0", "to": "q1", "label": "∅"}])
    code = run(["--config", write_config(payload), "--no-dot"])
    assert code == 1
    assert "reserved for the empty language" in capsys.readouterr().err


def test_run_exits_with_internal_error_code(write_config, monkeypatch, capsys):
    monkeypatch.setattr(
        RegexSynthesizer,
        "_visit",
        lambda self, state, path: ("a", [LoopFragment("ba", state)]),
    )
    code = run(["--config", write_config(CYCLE), "--no-dot"])
    captured = capsys.readouterr()
    assert code == 2
    assert "internal error" in captured.err
    assert "ba" in captured.err
    assert "Regular expression" not in captured.out


def test_run_reports_missing_file(tmp_path, capsys):
    code = run(["--config", str(tmp_path / "missing.json")])
    assert code == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_cli_flags_override_file_config(write_config, capsys):
    payload = dict(CYCLE, accept_states=["q0", "q1"], test_cases=[], config={"epsilon_symbol": "e"})
    code = run(["--config", write_config(payload), "--no-dot", "--optional-style", "brackets"])
    assert code == 0
    assert "Regular expression: (ab)*[a]" in capsys.readouterr().out


def test_session_uses_file_epsilon_symbol():
    payload = dict(
        CYCLE,
        transitions=[{"from": "q0", "to": "q1", "label": "~"}],
        config={"epsilon_symbol": "~"},
    )
    session = build_session_from_payload(payload)
    assert session.config.epsilon_symbol == "~"
    assert session.graph.transitions[0].is_epsilon
    assert [case.tokens for case in session.test_cases] == [("a", "b", "a"), ("a", "b")]


def test_dot_marks_unset_and_accepting(make_graph):
    graph = make_graph("q0 q1", accepting="q1", edges=[("q0", None, "q1"), ("q1", "epsilon", "q1")])
    dot = graph_to_dot(graph, graph_name='my "graph"')
    assert dot.startswith('digraph "my \\"graph\\"" {')
    assert "__start__ -> s0;" in dot
    assert 's1 [label="q1", shape=doublecircle];' in dot
    assert 's0 -> s1 [label="?", style=dashed, color="red"];' in dot
    assert 's1 -> s1 [label="ε"];' in dot
