"""Tests for automaton to regex synthesis."""

import sys

import pytest

from fsa_regex.config import SynthesisConfig
from fsa_regex.formatting import regex_matches
from fsa_regex.graph import EPSILON, StateGraph
from fsa_regex.synthesis import (
    DEAD_END,
    LoopFragment,
    PathNode,
    RegexSynthesizer,
    TraversalTooDeepError,
    UnconsumedLoopFragmentsError,
    UnsetTransitionError,
    synthesize,
)


def test_self_loop_on_accepting_state(make_graph):
    graph = make_graph("q0", accepting="q0", edges=[("q0", "a", "q0")])
    regex = synthesize(graph.start_state)
    assert regex == "a*"
    assert regex_matches(regex, "")
    assert regex_matches(regex, "aaa")


def test_branching_to_two_accepting_states(make_graph):
    graph = make_graph("s0 s1 s2", accepting="s1 s2", edges=[("s0", "a", "s1"), ("s0", "b", "s2")])
    assert synthesize(graph.start_state) == "(a|b)"


def test_two_state_cycle(make_graph):
    graph = make_graph("s0 s1", accepting="s1", edges=[("s0", "a", "s1"), ("s1", "b", "s0")])
    regex = synthesize(graph.start_state)
    assert regex == "(ab)*a"
    for text in ("a", "aba", "ababa"):
        assert regex_matches(regex, text)
    for text in ("", "ab", "b", "abab"):
        assert not regex_matches(regex, text)


def test_accepting_state_with_children_includes_epsilon(make_graph):
    graph = make_graph("s0 s1", accepting="s0 s1", edges=[("s0", "a", "s1")])
    assert synthesize(graph.start_state) == "(a|ε)"


def test_bracket_style_marks_optional_branches(make_graph):
    graph = make_graph("s0 s1", accepting="s0 s1", edges=[("s0", "a", "s1")])
    config = SynthesisConfig(optional_style="brackets")
    assert synthesize(graph.start_state, config) == "[a]"


def test_custom_epsilon_literal(make_graph):
    graph = make_graph("s0 s1", accepting="s0 s1", edges=[("s0", "a", "s1")])
    assert synthesize(graph.start_state, SynthesisConfig(epsilon_symbol="e")) == "(a|e)"


def test_lonely_states(make_graph):
    assert synthesize(make_graph("s0", accepting="s0").start_state) == ""
    assert synthesize(make_graph("s0").start_state) == "∅"


def test_dead_end_branches_contribute_nothing(make_graph):
    graph = make_graph("s0 s1 s2", accepting="s1", edges=[("s0", "a", "s1"), ("s0", "b", "s2")])
    assert synthesize(graph.start_state) == "a"


def test_epsilon_transitions_render_as_literal(make_graph):
    graph = make_graph(
        "s0 s1", accepting="s1", edges=[("s0", EPSILON, "s1"), ("s1", "a", "s1")]
    )
    regex = synthesize(graph.start_state)
    assert regex == "εa*"
    assert regex_matches(regex, "")
    assert regex_matches(regex, "aa")


def test_inner_loop_nested_in_outer_loop(make_graph):
    graph = make_graph(
        "s0 s1",
        accepting="s1",
        edges=[("s0", "a", "s1"), ("s1", "b", "s1"), ("s1", "c", "s0")],
    )
    assert synthesize(graph.start_state) == "(ab*c)*ab*"


def test_loop_fragment_accumulates_across_frames(make_graph):
    graph = make_graph(
        "s0 s1 s2",
        accepting="s2",
        edges=[("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "c", "s0")],
    )
    assert synthesize(graph.start_state) == "(abc)*ab"


def test_several_loops_at_one_state_alternate(make_graph):
    graph = make_graph("s0", accepting="s0", edges=[("s0", "a", "s0"), ("s0", "b", "s0")])
    assert synthesize(graph.start_state) == "(a|b)*"


def test_unset_transition_at_start(make_graph):
    graph = make_graph("q0 q1", accepting="q1", edges=[("q0", None, "q1")])
    with pytest.raises(UnsetTransitionError) as excinfo:
        synthesize(graph.start_state)
    assert excinfo.value.state_name == "q0"
    assert "q0" in str(excinfo.value)


def test_unset_transition_deeper_in_the_graph(make_graph):
    graph = make_graph(
        "q0 q1 q2",
        accepting="q2",
        edges=[("q0", "a", "q1"), ("q1", "", "q2")],
    )
    with pytest.raises(UnsetTransitionError) as excinfo:
        synthesize(graph.start_state)
    assert excinfo.value.state_name == "q1"


def test_unset_transition_on_unnamed_state():
    graph = StateGraph()
    start = graph.add_state()
    graph.add_transition(start, start)
    graph.set_start(start)
    with pytest.raises(UnsetTransitionError) as excinfo:
        synthesize(start)
    assert excinfo.value.state_name == "(unnamed)"


def test_unreachable_unset_transition_is_ignored(make_graph):
    graph = make_graph("q0 q1 q2", accepting="q0", edges=[("q1", None, "q2")])
    assert synthesize(graph.start_state) == ""


def test_synthesis_is_idempotent(make_graph):
    graph = make_graph(
        "s0 s1 s2",
        accepting="s1 s2",
        edges=[("s0", "a", "s1"), ("s1", "b", "s2"), ("s2", "a", "s0"), ("s1", "c", "s1")],
    )
    edges_before = [(e.source, e.label, e.target) for e in graph.transitions]
    synthesizer = RegexSynthesizer()
    first = synthesizer.synthesize(graph.start_state)
    second = synthesizer.synthesize(graph.start_state)
    assert first == second
    assert [(e.source, e.label, e.target) for e in graph.transitions] == edges_before


def test_leftover_loop_fragments_are_reported(make_graph, monkeypatch):
    graph = make_graph("s0", accepting="s0")
    start = graph.start_state
    monkeypatch.setattr(
        RegexSynthesizer,
        "_visit",
        lambda self, state, path: ("a", [LoopFragment("ba", start)]),
    )
    with pytest.raises(UnconsumedLoopFragmentsError) as excinfo:
        synthesize(start)
    assert excinfo.value.fragments == (LoopFragment("ba", start),)
    assert "ba" in str(excinfo.value)
    assert "internal error" in str(excinfo.value)


def test_path_node_sees_sources_of_ancestors(make_graph):
    graph = make_graph("s0 s1 s2", edges=[("s0", "a", "s1"), ("s1", "b", "s2")])
    s0, s1, s2 = graph.states
    first, second = graph.transitions
    path = PathNode(second, PathNode(first))
    assert path.leaves(s0)
    assert path.leaves(s1)
    assert not path.leaves(s2)
    # siblings share the parent untouched
    sibling = PathNode(first, path.parent)
    assert sibling.parent is path.parent
    assert not sibling.leaves(s1)


def test_dead_end_is_not_the_empty_string():
    assert DEAD_END != ""
    assert not isinstance(DEAD_END, str)


def test_overly_long_chain_is_reported_as_synthesis_error():
    graph = StateGraph()
    states = [graph.add_state(f"q{idx}") for idx in range(sys.getrecursionlimit() + 50)]
    states[-1].accepting = True
    for source, target in zip(states, states[1:]):
        graph.add_transition(source, target, "a")
    with pytest.raises(TraversalTooDeepError) as excinfo:
        synthesize(states[0])
    assert excinfo.value.limit == sys.getrecursionlimit()
