"""Core types: hints, heads, columns and compiled menus."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

# --- Hints ---


@dataclass(frozen=True)
class AbsentHint:
    """The head is bound but not shown in the menu text."""


@dataclass(frozen=True)
class TextHint:
    """A literal label rendered next to the key."""

    text: str


@dataclass(frozen=True)
class DynamicHint:
    """A label computed at display time.

    Layout only reserves room for it and renders a ``?key?`` placeholder;
    ``ref`` is called when the menu is displayed.
    """

    ref: Callable[[], Any]


Hint = Union[AbsentHint, TextHint, DynamicHint]

ABSENT = AbsentHint()


def to_hint(value: Any) -> Hint:
    """Coerce a user-supplied hint value into a :data:`Hint`."""
    if isinstance(value, (AbsentHint, TextHint, DynamicHint)):
        return value
    if value is None:
        return ABSENT
    if isinstance(value, str):
        return TextHint(value)
    if callable(value):
        return DynamicHint(value)
    msg = f"Unsupported hint value: {value!r}"
    raise ValueError(msg)


# --- Heads and columns ---


@dataclass(frozen=True)
class Head:
    """One key-triggered entry of a menu.

    Heads are shared between the registry and compiled menus, so they are
    immutable and ``options`` is a read-only copy.
    """

    key: str
    command: Any
    hint: Hint = ABSENT
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))


@dataclass
class Column:
    """A named group of heads rendered as one aligned block."""

    name: str
    heads: list[Head] = field(default_factory=list)


MenuDefinition = list[Column]

Context = Hashable


@dataclass
class Binding:
    """Input form of a head before hint derivation.

    ``hint`` left as ``None`` falls back to the command's display name; pass
    :data:`ABSENT` to keep the head out of the menu text.
    """

    key: str
    command: Any
    hint: Any = None
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class KeyCollision:
    """A binding skipped because its key was already taken."""

    context: Context
    key: str
    existing_command: Any
    rejected_command: Any


# --- Compiled artifact ---


@dataclass(frozen=True)
class HeadBinding:
    key: str
    command: Any
    options: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CompiledMenu:
    """Rendered menu text plus the flattened key table."""

    doc_text: str
    head_bindings: tuple[HeadBinding, ...]
    heads: tuple[Head, ...] = ()

    def keys(self) -> list[str]:
        return [binding.key for binding in self.head_bindings]

    def lookup(self, key: str) -> HeadBinding | None:
        """Return the binding for *key*, or ``None`` if it is not bound."""
        for binding in self.head_bindings:
            if binding.key == key:
                return binding
        return None
