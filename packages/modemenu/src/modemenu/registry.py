"""Per-context head registry and compiled menu cache."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from modemenu.types import (
    Binding,
    CompiledMenu,
    Context,
    Head,
    KeyCollision,
    to_hint,
)

logger = logging.getLogger(__name__)

BindingSpec = Binding | tuple[Any, ...]


@dataclass
class RegistryEntry:
    column: str
    head: Head


def display_name(command: Any) -> str:
    """Name a command is shown under when a binding gives no hint."""
    name = getattr(command, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return str(command)


def to_binding(spec: BindingSpec) -> Binding:
    """Normalize a binding tuple into a :class:`Binding`.

    Accepted shapes: ``(key, command)``, ``(key, command, hint)``,
    ``(key, command, options)`` and ``(key, command, hint, options)``.
    A mapping in the hint position is options, not a hint.
    """
    if isinstance(spec, Binding):
        return spec
    if not 2 <= len(spec) <= 4:
        msg = f"Binding must have 2 to 4 items, got {len(spec)}: {spec!r}"
        raise ValueError(msg)

    key, command, *rest = spec
    hint: Any = None
    options: Mapping[str, Any] = {}
    if rest and isinstance(rest[0], Mapping):
        if len(rest) > 1:
            msg = f"Options must come last in binding {spec!r}"
            raise ValueError(msg)
        options = rest[0]
    elif rest:
        hint = rest[0]
        if len(rest) > 1:
            options = rest[1]
    return Binding(str(key), command, hint, dict(options))


def to_head(binding: Binding) -> Head:
    hint = binding.hint if binding.hint is not None else display_name(binding.command)
    return Head(binding.key, binding.command, to_hint(hint), dict(binding.options))


class BindingRegistry:
    """Context -> heads, newest first.

    Keys are unique per context; the first binding of a key wins.  Keys in
    *reserved* count as bound in every context.
    """

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._entries: dict[Context, list[RegistryEntry]] = {}
        self._reserved = frozenset(reserved)

    def __contains__(self, context: Context) -> bool:
        return context in self._entries

    def contexts(self) -> list[Context]:
        return list(self._entries)

    def entries(self, context: Context) -> list[RegistryEntry] | None:
        entries = self._entries.get(context)
        return list(entries) if entries is not None else None

    def add_heads(
        self,
        context: Context,
        column: str,
        bindings: Iterable[BindingSpec],
    ) -> list[KeyCollision]:
        """Prepend *bindings* under *column*, skipping keys already bound.

        A malformed binding raises ``ValueError`` before anything is stored.
        """
        heads = [to_head(to_binding(spec)) for spec in bindings]
        entries = list(self._entries.get(context, []))
        collisions = self._merge(context, entries, column, heads)
        self._entries[context] = entries
        return collisions

    def replace(
        self,
        context: Context,
        columns: Mapping[str, Iterable[BindingSpec]],
    ) -> list[KeyCollision]:
        """Swap everything bound in *context* for *columns* in one step."""
        converted = [
            (column, [to_head(to_binding(spec)) for spec in bindings])
            for column, bindings in columns.items()
        ]
        entries: list[RegistryEntry] = []
        collisions: list[KeyCollision] = []
        for column, heads in converted:
            collisions.extend(self._merge(context, entries, column, heads))
        self._entries[context] = entries
        return collisions

    def _merge(
        self,
        context: Context,
        entries: list[RegistryEntry],
        column: str,
        heads: list[Head],
    ) -> list[KeyCollision]:
        collisions: list[KeyCollision] = []
        for head in heads:
            if head.key in self._reserved:
                logger.warning("%r is reserved for leaving the menu in %r", head.key, context)
                collisions.append(KeyCollision(context, head.key, None, head.command))
                continue
            existing = next((e.head for e in entries if e.head.key == head.key), None)
            if existing is not None:
                logger.warning(
                    "%r has already been bound to %s in %r",
                    head.key,
                    display_name(existing.command),
                    context,
                )
                collisions.append(KeyCollision(context, head.key, existing.command, head.command))
                continue
            entries.insert(0, RegistryEntry(column, head))
        return collisions

    def remove_all(self, context: Context) -> None:
        self._entries.pop(context, None)

    def clear(self) -> None:
        self._entries.clear()


class CompiledCache:
    """Context -> last compiled menu."""

    def __init__(self) -> None:
        self._menus: dict[Context, CompiledMenu] = {}

    def __contains__(self, context: Context) -> bool:
        return context in self._menus

    def get(self, context: Context) -> CompiledMenu | None:
        return self._menus.get(context)

    def put(self, context: Context, menu: CompiledMenu) -> None:
        self._menus[context] = menu

    def invalidate(self, context: Context) -> None:
        self._menus.pop(context, None)

    def clear(self) -> None:
        self._menus.clear()
