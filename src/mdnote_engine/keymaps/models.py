"""Dataclasses describing key bindings and the commands they run."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

DEFAULT_SCOPE = "editor"

MODIFIER_ORDER = ("ctrl", "alt", "shift", "meta")

KEY_ALIASES = {
    "esc": "Escape",
    "return": "Enter",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "up": "ArrowUp",
    "down": "ArrowDown",
}


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    wanted = {m.strip().lower() for m in modifiers if m.strip()}
    unknown = wanted.difference(MODIFIER_ORDER)
    if unknown:
        raise ValueError(f"unknown modifiers: {sorted(unknown)}")
    return tuple(name for name in MODIFIER_ORDER if name in wanted)


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """One key press as the editor reports it (``Tab``, ``shift+Tab``, ``ctrl+a``).

    Modifiers are stored in a fixed order so equal presses compare and hash
    equal; a few lowercase aliases map onto the editor's key names.
    """

    key: str
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "key", KEY_ALIASES.get(self.key.lower(), self.key))
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @classmethod
    def parse(cls, token: str) -> "KeyStroke":
        *mods, key = token.strip().split("+")
        if not key:
            raise ValueError(f"invalid key token {token!r}")
        return cls(key=key, modifiers=tuple(mods))

    @property
    def token(self) -> str:
        return "+".join((*self.modifiers, self.key))


@dataclass(frozen=True, slots=True)
class WhenClause:
    """Session flag a binding requires (``in_prompt_block``) or forbids (``!in_prompt_block``)."""

    flag: str
    expected: bool = True

    def __post_init__(self) -> None:
        if not self.flag:
            raise ValueError("flag cannot be empty")

    @classmethod
    def parse(cls, expression: str) -> "WhenClause":
        text = expression.strip()
        negated = text.startswith("!")
        return cls(text[1:] if negated else text, not negated)

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return bool(flags.get(self.flag, False)) == self.expected

    def __str__(self) -> str:
        return self.flag if self.expected else f"!{self.flag}"


@dataclass(frozen=True, slots=True)
class ActionRef:
    """A command handler registered under a dotted id (``list.indent``)."""

    id: str
    handler: Callable[..., object]
    description: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")

    @property
    def telemetry_name(self) -> str:
        return self.id.replace(".", "::")

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


@dataclass(frozen=True, slots=True)
class Binding:
    """Associates a key with an action, a priority and ``when`` flags.

    Higher priorities are tried first; a command that does not consume the key
    falls through to the next binding.
    """

    id: str
    stroke: KeyStroke
    action_id: str
    scope: str = DEFAULT_SCOPE
    description: str = ""
    when: tuple[WhenClause, ...] = ()
    priority: int = 0

    def __post_init__(self) -> None:
        for name in ("id", "scope", "action_id"):
            if not getattr(self, name):
                raise ValueError(f"binding {name} cannot be empty")
        if isinstance(self.stroke, str):
            object.__setattr__(self, "stroke", KeyStroke.parse(self.stroke))
        clauses = tuple(
            clause if isinstance(clause, WhenClause) else WhenClause.parse(str(clause))
            for clause in self.when
        )
        object.__setattr__(self, "when", clauses)

    @property
    def when_map(self) -> Mapping[str, bool]:
        return MappingProxyType({clause.flag: clause.expected for clause in self.when})

    def allows(self, flags: Mapping[str, bool]) -> bool:
        return all(clause.evaluate(flags) for clause in self.when)

    def shadows(self, other: "Binding") -> bool:
        """Whether both would be tried at the same slot for the same flags."""

        return (
            self.scope == other.scope
            and self.key_signature == other.key_signature
            and self.priority == other.priority
            and set(self.when) == set(other.when)
        )

    @property
    def key_signature(self) -> str:
        return self.stroke.token


__all__ = [
    "DEFAULT_SCOPE",
    "KEY_ALIASES",
    "MODIFIER_ORDER",
    "KeyStroke",
    "WhenClause",
    "ActionRef",
    "Binding",
]
