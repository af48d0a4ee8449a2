from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union

from .automata import AutomatonValidationError, NFA
from .config import DEFAULT_EMPTY_SYMBOL, DEFAULT_EPSILON_SYMBOL

UNNAMED = "(unnamed)"


class Special(Enum):
    EPSILON = "epsilon"
    UNSET = "unset"

    def __repr__(self) -> str:
        return self.name


EPSILON = Special.EPSILON
UNSET = Special.UNSET

Label = Union[str, Special]


def normalize_label(
    value: Any,
    epsilon_symbol: str = DEFAULT_EPSILON_SYMBOL,
    empty_symbol: str = DEFAULT_EMPTY_SYMBOL,
) -> Label:
    """Turn user input into a transition label.

    Empty input means the user has not picked a character yet. Typing the word
    ``epsilon`` (or the epsilon literal itself) gives an epsilon move. The
    empty-language symbol is refused, since a regex made of it reads as "accepts
    nothing".
    """
    if value is None or value == "":
        return UNSET
    if isinstance(value, Special):
        return value
    if not isinstance(value, str):
        raise AutomatonValidationError(f"Transition label {value!r} must be a string.")
    if value == epsilon_symbol or value.lower() == "epsilon":
        return EPSILON
    if value == empty_symbol:
        raise AutomatonValidationError(
            f"Transition label '{value}' is reserved for the empty language."
        )
    if len(value) != 1:
        raise AutomatonValidationError(
            f"Transition label '{value}' must be a single character."
        )
    return value


class State:
    __slots__ = ("name", "accepting", "out_edges", "in_edges")

    def __init__(self, name: str = "", accepting: bool = False) -> None:
        self.name = name
        self.accepting = accepting
        self.out_edges: List[Transition] = []
        self.in_edges: List[Transition] = []

    @property
    def display_name(self) -> str:
        return self.name or UNNAMED

    def __repr__(self) -> str:
        marker = " accepting" if self.accepting else ""
        return f"<State {self.display_name}{marker}>"


class Transition:
    __slots__ = ("source", "target", "label")

    def __init__(self, source: State, target: State, label: Label = UNSET) -> None:
        self.source = source
        self.target = target
        self.label = label

    @property
    def is_unset(self) -> bool:
        return self.label is UNSET

    @property
    def is_epsilon(self) -> bool:
        return self.label is EPSILON

    def __repr__(self) -> str:
        return f"<Transition {self.source.display_name} -{self.label!r}-> {self.target.display_name}>"


class StateGraph:
    """The automaton as the editor holds it: states, labelled edges, one start."""

    def __init__(
        self,
        epsilon_symbol: str = DEFAULT_EPSILON_SYMBOL,
        empty_symbol: str = DEFAULT_EMPTY_SYMBOL,
    ) -> None:
        self.epsilon_symbol = epsilon_symbol
        self.empty_symbol = empty_symbol
        self._states: List[State] = []
        self._start: Optional[State] = None

    # ---------------------------------------------------------------
    @property
    def states(self) -> List[State]:
        return list(self._states)

    @property
    def start_state(self) -> Optional[State]:
        return self._start

    @property
    def transitions(self) -> List[Transition]:
        return [edge for state in self._states for edge in state.out_edges]

    @property
    def alphabet(self) -> List[str]:
        symbols: Set[str] = set()
        for edge in self.transitions:
            if isinstance(edge.label, str):
                symbols.add(edge.label)
        return sorted(symbols)

    def __iter__(self) -> Iterator[State]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def state_named(self, name: str) -> State:
        for state in self._states:
            if state.name == name:
                return state
        raise KeyError(name)

    # ---------------------------------------------------------------
    def add_state(self, name: str = "", accepting: bool = False) -> State:
        state = State(name, accepting)
        self._states.append(state)
        return state

    def remove_state(self, state: State) -> None:
        self._require_member(state)
        # self-loops sit in both lists
        incident = {id(edge): edge for edge in state.out_edges + state.in_edges}
        for edge in incident.values():
            self.remove_transition(edge)
        self._states.remove(state)
        if self._start is state:
            self._start = None

    def rename_state(self, state: State, name: str) -> None:
        self._require_member(state)
        state.name = name

    def toggle_accept(self, state: State) -> bool:
        self._require_member(state)
        state.accepting = not state.accepting
        return state.accepting

    def set_start(self, state: Optional[State]) -> None:
        if state is not None:
            self._require_member(state)
        self._start = state

    def add_transition(self, source: State, target: State, label: Any = UNSET) -> Transition:
        self._require_member(source)
        self._require_member(target)
        label = normalize_label(label, self.epsilon_symbol, self.empty_symbol)
        edge = Transition(source, target, label)
        source.out_edges.append(edge)
        target.in_edges.append(edge)
        return edge

    def remove_transition(self, edge: Transition) -> None:
        edge.source.out_edges.remove(edge)
        edge.target.in_edges.remove(edge)

    def set_label(self, edge: Transition, label: Any) -> None:
        edge.label = normalize_label(label, self.epsilon_symbol, self.empty_symbol)

    def _require_member(self, state: State) -> None:
        if not any(state is known for known in self._states):
            raise AutomatonValidationError(f"State {state.display_name} is not part of this graph.")

    # ---------------------------------------------------------------
    def to_nfa(self, epsilon_symbol: str = "epsilon") -> NFA:
        """Build the reference simulator for this graph.

        States are named by position, so unnamed or duplicate names are fine.
        """
        if self._start is None:
            raise AutomatonValidationError("Starting state does not exist.")
        ids: Dict[int, str] = {id(state): f"s{idx}" for idx, state in enumerate(self._states)}
        transitions: Dict[str, Dict[str, List[str]]] = {name: {} for name in ids.values()}
        for edge in self.transitions:
            if edge.is_unset:
                raise AutomatonValidationError(
                    f"Transition from {edge.source.display_name} has no label."
                )
            symbol = epsilon_symbol if edge.is_epsilon else edge.label
            row = transitions[ids[id(edge.source)]]
            row.setdefault(symbol, []).append(ids[id(edge.target)])
        return NFA(
            list(ids.values()),
            self.alphabet,
            transitions,
            ids[id(self._start)],
            [ids[id(state)] for state in self._states if state.accepting],
            epsilon_symbol=epsilon_symbol,
        )

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        epsilon_symbol: str = DEFAULT_EPSILON_SYMBOL,
        empty_symbol: str = DEFAULT_EMPTY_SYMBOL,
    ) -> "StateGraph":
        if not isinstance(payload, Mapping):
            raise ValueError("Graph payload must be a mapping.")
        names = payload.get("states")
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise ValueError("Config field 'states' must be a list of strings.")
        if len(set(names)) != len(names):
            raise ValueError("Config field 'states' must not repeat names.")
        accept_states = payload.get("accept_states", [])
        if not isinstance(accept_states, list) or not all(isinstance(n, str) for n in accept_states):
            raise ValueError("Config field 'accept_states' must be a list of strings.")

        graph = cls(epsilon_symbol=epsilon_symbol, empty_symbol=empty_symbol)
        by_name: Dict[str, State] = {}
        for name in names:
            by_name[name] = graph.add_state(name, accepting=name in accept_states)
        unknown = [name for name in accept_states if name not in by_name]
        if unknown:
            raise ValueError(f"Accept states not declared: {', '.join(unknown)}.")

        start_name = payload.get("start_state")
        if start_name is not None:
            if start_name not in by_name:
                raise ValueError(f"Config field 'start_state' names unknown state '{start_name}'.")
            graph.set_start(by_name[start_name])

        entries = payload.get("transitions", [])
        if not isinstance(entries, list):
            raise ValueError("Config field 'transitions' must be a list.")
        for index, entry in enumerate(entries, start=1):
            if not isinstance(entry, Mapping):
                raise ValueError(f"Transition {index} must be an object with 'from' and 'to'.")
            endpoints = []
            for key in ("from", "to"):
                name = entry.get(key)
                if name not in by_name:
                    raise ValueError(f"Transition {index} field '{key}' names unknown state {name!r}.")
                endpoints.append(by_name[name])
            try:
                graph.add_transition(endpoints[0], endpoints[1], entry.get("label"))
            except AutomatonValidationError as exc:
                raise ValueError(f"Transition {index}: {exc}") from exc
        return graph
