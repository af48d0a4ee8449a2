import pytest

from fsa_regex.graph import StateGraph


@pytest.fixture
def make_graph():
    """Build a graph from state names, accepting names and (from, label, to) triples.

    The first state listed is the start state unless ``start`` says otherwise.
    """

    def build(states, accepting=(), edges=(), start=None, **kwargs):
        if isinstance(accepting, str):
            accepting = accepting.split()
        graph = StateGraph(**kwargs)
        by_name = {}
        for name in states.split():
            by_name[name] = graph.add_state(name, accepting=name in accepting)
        for source, label, target in edges:
            graph.add_transition(by_name[source], by_name[target], label)
        if start is not False and by_name:
            graph.set_start(by_name[start or states.split()[0]])
        return graph

    return build
