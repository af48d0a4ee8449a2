from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

DEFAULT_EPSILON_SYMBOL = "ε"
DEFAULT_EMPTY_SYMBOL = "∅"
OPTIONAL_STYLES = ("epsilon", "brackets")


@dataclass(frozen=True)
class SynthesisConfig:
    """How synthesized regexes are spelled.

    ``optional_style`` picks what an accepting state with outgoing paths looks
    like: ``"epsilon"`` writes ``(a|b|ε)``, ``"brackets"`` writes ``[a|b]``.
    """

    epsilon_symbol: str = DEFAULT_EPSILON_SYMBOL
    empty_symbol: str = DEFAULT_EMPTY_SYMBOL
    optional_style: str = "epsilon"

    def __post_init__(self) -> None:
        if not isinstance(self.epsilon_symbol, str) or len(self.epsilon_symbol) != 1:
            raise ValueError("Config field 'epsilon_symbol' must be a single character.")
        if not isinstance(self.empty_symbol, str) or not self.empty_symbol:
            raise ValueError("Config field 'empty_symbol' must be a non-empty string.")
        if self.empty_symbol == self.epsilon_symbol:
            raise ValueError("Config fields 'empty_symbol' and 'epsilon_symbol' must differ.")
        if self.optional_style not in OPTIONAL_STYLES:
            raise ValueError(
                f"Config field 'optional_style' must be one of: {', '.join(OPTIONAL_STYLES)}."
            )

    @property
    def brackets(self) -> bool:
        return self.optional_style == "brackets"

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "SynthesisConfig":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ValueError("Config field 'config' must be an object.")
        unknown = sorted(set(payload) - {"epsilon_symbol", "empty_symbol", "optional_style"})
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(unknown)}.")
        return cls(**dict(payload))

    def with_overrides(self, **overrides: Optional[str]) -> "SynthesisConfig":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self
