from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Set, Tuple


class AutomatonError(Exception):
    """Base error for anything automaton-shaped going sideways."""


class AutomatonValidationError(AutomatonError):
    """The graph handed to us does not make sense."""


TransitionMap = Dict[str, Dict[str, FrozenSet[str]]]


def _iter_bits(mask: int) -> Iterable[int]:
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


class Automaton:
    __slots__ = (
        "_states",
        "_alphabet",
        "_start_state",
        "_accept_states",
        "_transitions",
        "_state_to_idx",
        "_symbol_to_idx",
        "_start_idx",
        "_accept_mask",
    )

    def __init__(
        self,
        states: Sequence[str],
        alphabet: Sequence[str],
        transitions: Mapping[str, Mapping[str, Iterable[str]]],
        start_state: str,
        accept_states: Iterable[str],
    ) -> None:
        self._states = tuple(self._normalize_state(s) for s in states)
        if not self._states:
            raise AutomatonValidationError("Need at least one state.")
        if len(set(self._states)) != len(self._states):
            raise AutomatonValidationError("State names must be unique.")

        self._alphabet = tuple(self._normalize_symbol(sym) for sym in alphabet)
        if len(set(self._alphabet)) != len(self._alphabet):
            raise AutomatonValidationError("Duplicate alphabet symbols.")

        self._start_state = self._normalize_state(start_state)
        self._accept_states = frozenset(self._normalize_state(s) for s in accept_states)
        self._state_to_idx = {state: idx for idx, state in enumerate(self._states)}
        self._symbol_to_idx = {symbol: idx for idx, symbol in enumerate(self._alphabet)}

        if self._start_state not in self._state_to_idx:
            raise AutomatonValidationError("Start state is not one of the states.")
        missing_accepts = [s for s in self._accept_states if s not in self._state_to_idx]
        if missing_accepts:
            raise AutomatonValidationError(
                f"Accept states not declared: {', '.join(sorted(missing_accepts))}."
            )
        self._transitions = self._build_transition_map(transitions)

        self._start_idx = self._state_to_idx[self._start_state]
        self._accept_mask = 0
        for state in self._accept_states:
            self._accept_mask |= 1 << self._state_to_idx[state]

    # ---------------------------------------------------------------
    @staticmethod
    def _normalize_state(state: str) -> str:
        if not isinstance(state, str) or not state:
            raise AutomatonValidationError("States must be non-empty strings.")
        return state.strip()

    @staticmethod
    def _normalize_symbol(symbol: str) -> str:
        if not isinstance(symbol, str) or not symbol:
            raise AutomatonValidationError("Alphabet symbols must be non-empty strings.")
        return symbol

    def _build_transition_map(
        self, transitions: Mapping[str, Mapping[str, Iterable[str]]]
    ) -> TransitionMap:
        result: TransitionMap = {state: {} for state in self._states}
        for state, mapping in transitions.items():
            norm_state = self._normalize_state(state)
            if norm_state not in self._state_to_idx:
                raise AutomatonValidationError(
                    f"State '{state}' shows up in transitions but not in the state list."
                )
            for symbol, destinations in mapping.items():
                norm_symbol = self._normalize_symbol(symbol)
                norm_dests = frozenset(self._normalize_state(dst) for dst in destinations or ())
                for dest in norm_dests:
                    if dest not in self._state_to_idx:
                        raise AutomatonValidationError(f"Destination '{dest}' was never declared.")
                result[norm_state][norm_symbol] = norm_dests
        return result

    # ---------------------------------------------------------------
    @property
    def states(self) -> Sequence[str]:
        return self._states

    @property
    def alphabet(self) -> Sequence[str]:
        return self._alphabet

    @property
    def start_state(self) -> str:
        return self._start_state

    @property
    def accept_states(self) -> FrozenSet[str]:
        return self._accept_states

    @property
    def transitions(self) -> TransitionMap:
        return self._transitions

    def _names_to_bitset(self, names: Iterable[str]) -> int:
        mask = 0
        for name in names:
            mask |= 1 << self._state_to_idx[name]
        return mask

    def _bitset_to_names(self, bitset: int) -> FrozenSet[str]:
        return frozenset(self._states[idx] for idx in _iter_bits(bitset))


class NFA(Automaton):
    """Nondeterministic automaton with epsilon moves, simulated on bit masks.

    This is the reference acceptor: synthesized regular expressions are
    checked against it, string by string.
    """

    __slots__ = ("_epsilon_symbol", "_epsilon_closure_masks", "_symbol_rows")

    def __init__(
        self,
        states: Sequence[str],
        alphabet: Sequence[str],
        transitions: Mapping[str, Mapping[str, Iterable[str]]],
        start_state: str,
        accept_states: Iterable[str],
        epsilon_symbol: str = "epsilon",
    ) -> None:
        self._epsilon_symbol = self._normalize_symbol(epsilon_symbol)
        if self._epsilon_symbol in alphabet:
            raise AutomatonValidationError("Epsilon symbol sneaked into the alphabet.")
        super().__init__(states, alphabet, transitions, start_state, accept_states)
        allowed = set(self._alphabet) | {self._epsilon_symbol}
        for state, mapping in self._transitions.items():
            for symbol in mapping:
                if symbol not in allowed:
                    raise AutomatonValidationError(
                        f"Symbol '{symbol}' used by state '{state}' is not in the alphabet."
                    )
        self._epsilon_closure_masks = self._build_epsilon_closures()
        self._symbol_rows = self._build_symbol_rows()

    @property
    def epsilon_symbol(self) -> str:
        return self._epsilon_symbol

    def _build_epsilon_closures(self) -> Tuple[int, ...]:
        epsilon_rows = [
            self._names_to_bitset(self._transitions[state].get(self._epsilon_symbol, ()))
            for state in self._states
        ]
        closures: List[int] = []
        for state_idx in range(len(self._states)):
            stack = [state_idx]
            visited = 1 << state_idx
            while stack:
                here = stack.pop()
                for nxt in _iter_bits(epsilon_rows[here] & ~visited):
                    visited |= 1 << nxt
                    stack.append(nxt)
            closures.append(visited)
        return tuple(closures)

    def _build_symbol_rows(self) -> Tuple[Tuple[int, ...], ...]:
        # Row per state, column per symbol: targets already epsilon-closed.
        table: List[Tuple[int, ...]] = []
        for state in self._states:
            mapping = self._transitions[state]
            row: List[int] = []
            for symbol in self._alphabet:
                closed = 0
                for nxt in _iter_bits(self._names_to_bitset(mapping.get(symbol, ()))):
                    closed |= self._epsilon_closure_masks[nxt]
                row.append(closed)
            table.append(tuple(row))
        return tuple(table)

    def epsilon_closure(self, states: Iterable[str]) -> FrozenSet[str]:
        mask = 0
        for state in states:
            idx = self._state_to_idx.get(self._normalize_state(state))
            if idx is not None:
                mask |= self._epsilon_closure_masks[idx]
        return self._bitset_to_names(mask)

    def _step(self, subset_mask: int, symbol_idx: int) -> int:
        mask = 0
        for state_idx in _iter_bits(subset_mask):
            mask |= self._symbol_rows[state_idx][symbol_idx]
        return mask

    def accepts(self, input_symbols: Iterable[str]) -> bool:
        current = self._epsilon_closure_masks[self._start_idx]
        for symbol in input_symbols:
            symbol_idx = self._symbol_to_idx.get(symbol)
            if symbol_idx is None:
                return False
            current = self._step(current, symbol_idx)
            if not current:
                return False
        return bool(current & self._accept_mask)

    def reachable_states(self) -> Set[str]:
        seen = self._epsilon_closure_masks[self._start_idx]
        frontier = seen
        while frontier:
            nxt = 0
            for symbol_idx in range(len(self._alphabet)):
                nxt |= self._step(frontier, symbol_idx)
            frontier = nxt & ~seen
            seen |= nxt
        return set(self._bitset_to_names(seen))
