from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_EPSILON_SYMBOL
from .graph import StateGraph, Transition


def graph_to_dot(
    graph: StateGraph,
    *,
    graph_name: str = "Automaton",
    rankdir: str = "LR",
    epsilon_symbol: str = DEFAULT_EPSILON_SYMBOL,
    regex: Optional[str] = None,
) -> str:
    """Return a Graphviz DOT representation of the state graph.

    Unset transitions are drawn dashed and red so they are easy to spot. When
    ``regex`` is given it becomes the graph label.
    """
    ids = {id(state): f"s{idx}" for idx, state in enumerate(graph.states)}

    lines: List[str] = [f'digraph "{_escape(graph_name)}" {{']
    lines.append(f"  rankdir={rankdir};")
    lines.append("  node [shape=circle];")
    if regex is not None:
        lines.append(f'  label="{_escape(regex)}";')
        lines.append("  labelloc=b;")
    if graph.start_state is not None:
        lines.append("  __start__ [shape=point];")
        lines.append(f"  __start__ -> {ids[id(graph.start_state)]};")

    for state in graph.states:
        shape = "doublecircle" if state.accepting else "circle"
        lines.append(f'  {ids[id(state)]} [label="{_escape(state.name)}", shape={shape}];')

    for source, target, labels, unset in _collect_edges(graph, ids, epsilon_symbol):
        attributes = [f'label="{_escape(", ".join(labels))}"']
        if unset:
            attributes.append("style=dashed")
            attributes.append('color="red"')
        lines.append(f"  {source} -> {target} [{', '.join(attributes)}];")

    lines.append("}")
    return "\n".join(lines)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _label(edge: Transition, epsilon_symbol: str) -> str:
    if edge.is_unset:
        return "?"
    if edge.is_epsilon:
        return epsilon_symbol
    return edge.label


def _collect_edges(
    graph: StateGraph, ids: Dict[int, str], epsilon_symbol: str
) -> Iterable[Tuple[str, str, List[str], bool]]:
    grouped: Dict[Tuple[str, str], List[Transition]] = {}
    for edge in graph.transitions:
        key = (ids[id(edge.source)], ids[id(edge.target)])
        grouped.setdefault(key, []).append(edge)
    for (source, target), edges in grouped.items():
        labels = sorted(_label(edge, epsilon_symbol) for edge in edges)
        yield source, target, labels, any(edge.is_unset for edge in edges)


def write_dot(graph: StateGraph, path: str, **kwargs) -> str:
    """Generate a DOT file at `path` and return the path."""
    dot = graph_to_dot(graph, **kwargs)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(dot + "\n")
    return path
