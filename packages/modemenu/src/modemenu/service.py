"""MenuService: bind heads per context and serve compiled menus.

The service owns one :class:`BindingRegistry` and one :class:`CompiledCache`.
A context's cached menu is dropped whenever its heads change and rebuilt on
the next access, so a cached menu always reflects the current registry.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping

from modemenu.config import MenuConfig
from modemenu.layout import DocstringFormatter, HeadFormatter, build_menu
from modemenu.registry import BindingRegistry, BindingSpec, CompiledCache
from modemenu.types import Column, CompiledMenu, Context, Head, KeyCollision

logger = logging.getLogger(__name__)

Dispatcher = Callable[[CompiledMenu], None]
MissingMenuNotifier = Callable[[Context], None]


def _log_missing_menu(context: Context) -> None:
    logger.warning("No menu defined for %r", context)


class MenuService:
    """Per-context menus, compiled lazily and cached until their heads change."""

    def __init__(
        self,
        config: MenuConfig | None = None,
        *,
        head_formatter: HeadFormatter | None = None,
        docstring_formatter: DocstringFormatter | None = None,
        dispatcher: Dispatcher | None = None,
        on_missing: MissingMenuNotifier | None = None,
        registry: BindingRegistry | None = None,
        cache: CompiledCache | None = None,
    ) -> None:
        self._config = config or MenuConfig()
        self._head_formatter = head_formatter
        self._docstring_formatter = docstring_formatter
        self._dispatcher = dispatcher
        self._on_missing = on_missing or _log_missing_menu
        self._registry = (
            registry if registry is not None else BindingRegistry(self._config.quit_keys)
        )
        self._cache = cache if cache is not None else CompiledCache()
        self._lock = threading.RLock()

    @property
    def config(self) -> MenuConfig:
        return self._config

    # --- Registry mutation ---

    def bind(
        self,
        context: Context,
        column: str,
        bindings: Iterable[BindingSpec],
    ) -> list[KeyCollision]:
        """Add heads to *column* of *context*.

        Keys already bound in the context, and the quit keys, are skipped and
        reported.  A malformed binding raises ``ValueError`` and binds nothing.
        """
        with self._lock:
            try:
                return self._registry.add_heads(context, column, bindings)
            finally:
                self._cache.invalidate(context)

    def define(
        self,
        context: Context,
        columns: Mapping[str, Iterable[BindingSpec]],
    ) -> list[KeyCollision]:
        """Replace everything bound in *context* with *columns*.

        On ``ValueError`` the previous heads stay bound.
        """
        with self._lock:
            try:
                return self._registry.replace(context, columns)
            finally:
                self._cache.invalidate(context)

    def unbind_all(self, context: Context) -> None:
        with self._lock:
            self._registry.remove_all(context)
            self._cache.invalidate(context)

    def clear(self) -> None:
        """Forget every context."""
        with self._lock:
            self._registry.clear()
            self._cache.clear()

    # --- Introspection ---

    def contexts(self) -> list[Context]:
        return self._registry.contexts()

    def heads(self, context: Context) -> list[Head]:
        """Heads bound in *context*, oldest first."""
        entries = self._registry.entries(context) or []
        return [entry.head for entry in reversed(entries)]

    # --- Compilation ---

    def invalidate(self, context: Context) -> None:
        with self._lock:
            self._cache.invalidate(context)

    def get_or_compile(self, context: Context) -> CompiledMenu | None:
        """Return the compiled menu for *context*, or ``None`` if nothing is bound."""
        with self._lock:
            menu = self._cache.get(context)
            if menu is not None:
                return menu

            # A context bound with an empty batch has nothing to lay out
            entries = self._registry.entries(context)
            if not entries:
                return None

            columns: dict[str, Column] = {}
            for entry in reversed(entries):
                columns.setdefault(entry.column, Column(entry.column)).heads.append(entry.head)

            logger.debug("Compiling menu for %r", context)
            menu = build_menu(
                list(columns.values()),
                config=self._config,
                head_formatter=self._head_formatter,
                docstring_formatter=self._docstring_formatter,
            )
            self._cache.put(context, menu)
            return menu

    def activate(self, context: Context) -> CompiledMenu | None:
        """Resolve the menu for *context* and hand it to the dispatcher."""
        menu = self.get_or_compile(context)
        if menu is None:
            self._on_missing(context)
            return None
        if self._dispatcher is not None:
            self._dispatcher(menu)
        return menu
