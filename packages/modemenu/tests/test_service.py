"""Tests for modemenu.service -- binding, lazy compilation and activation."""

from __future__ import annotations

import dataclasses
import logging

import pytest

from modemenu.config import MenuConfig
from modemenu.layout import format_head
from modemenu.service import MenuService
from modemenu.types import CompiledMenu, Head


def open_cmd() -> None:
    pass


def save_cmd() -> None:
    pass


def undo_cmd() -> None:
    pass


def redo_cmd() -> None:
    pass


class CountingFormatter:
    """Head formatter that counts how often layout runs."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, head: Head) -> str | None:
        self.calls += 1
        return format_head(head)


@pytest.fixture
def formatter() -> CountingFormatter:
    return CountingFormatter()


@pytest.fixture
def service(formatter: CountingFormatter) -> MenuService:
    svc = MenuService(head_formatter=formatter)
    svc.bind("C", "Files", [("o", open_cmd, "open"), ("s", save_cmd, "save")])
    svc.bind("C", "Edit", [("u", undo_cmd)])
    return svc


# ---------------------------------------------------------------------------
# get_or_compile
# ---------------------------------------------------------------------------


class TestGetOrCompile:
    """Menus are built on first access and cached until their heads change."""

    def test_files_and_edit_scenario(self, service: MenuService) -> None:
        menu = service.get_or_compile("C")
        assert menu is not None
        assert menu.doc_text == (
            "\n"
            " Files^^      Edit^^         \n"
            "------------ ----------------\n"
            " [_o_] open   [_u_] undo_cmd \n"
            " [_s_] save                  \n"
        )
        assert sorted(menu.keys()) == sorted(["o", "s", "u", "escape", "ctrl+g"])
        assert menu.lookup("o").command is open_cmd
        assert menu.lookup("u").command is undo_cmd

    def test_columns_and_heads_in_insertion_order(self, service: MenuService) -> None:
        menu = service.get_or_compile("C")
        assert menu.keys() == ["o", "s", "u", "escape", "ctrl+g"]

    def test_unknown_context(self, service: MenuService) -> None:
        assert service.get_or_compile("nope") is None

    def test_empty_bind_has_no_menu(self) -> None:
        svc = MenuService()
        svc.bind("empty", "Files", [])
        assert svc.get_or_compile("empty") is None

    def test_cached_until_changed(self, service: MenuService, formatter: CountingFormatter) -> None:
        first = service.get_or_compile("C")
        calls = formatter.calls
        second = service.get_or_compile("C")
        assert second is first
        assert formatter.calls == calls

    def test_bind_recompiles(self, service: MenuService) -> None:
        first = service.get_or_compile("C")
        service.bind("C", "Edit", [("r", redo_cmd, "redo")])
        second = service.get_or_compile("C")
        assert second is not first
        assert "r" in second.keys()
        assert "r" not in first.keys()

    def test_explicit_invalidate(self, service: MenuService, formatter: CountingFormatter) -> None:
        first = service.get_or_compile("C")
        service.invalidate("C")
        calls = formatter.calls
        second = service.get_or_compile("C")
        assert formatter.calls > calls
        assert second == first
        assert second is not first

    def test_mutation_leaves_other_contexts_cached(self, service: MenuService) -> None:
        service.bind("D", "Misc", [("x", redo_cmd, "redo")])
        c_menu = service.get_or_compile("C")
        d_menu = service.get_or_compile("D")

        service.bind("D", "Misc", [("y", undo_cmd, "undo")])
        assert service.get_or_compile("C") is c_menu
        assert service.get_or_compile("D") is not d_menu

        service.unbind_all("D")
        assert service.get_or_compile("C") is c_menu

    def test_config_applied(self) -> None:
        svc = MenuService(MenuConfig(title="Buffer", quit_keys=("q", "escape")))
        svc.bind("C", "Files", [("o", open_cmd, "open")])
        menu = svc.get_or_compile("C")
        assert menu.doc_text.startswith("\nBuffer\n Files^^")
        assert menu.keys() == ["o", "q", "escape"]

    def test_docstring_formatter_applied(self) -> None:
        svc = MenuService(docstring_formatter=str.upper)
        svc.bind("C", "Files", [("o", open_cmd, "open")])
        assert "[_O_] OPEN" in svc.get_or_compile("C").doc_text

    def test_compiled_heads_are_read_only(self, service: MenuService) -> None:
        menu = service.get_or_compile("C")
        with pytest.raises(dataclasses.FrozenInstanceError):
            menu.heads[0].key = "x"  # type: ignore[misc]
        with pytest.raises(dataclasses.FrozenInstanceError):
            service.heads("C")[0].command = redo_cmd  # type: ignore[misc]
        assert service.get_or_compile("C").lookup("o").command is open_cmd


# ---------------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------------


class TestCollisions:
    """The first binding of a key wins; later ones are reported and skipped."""

    def test_rebinding_key_keeps_first_command(
        self, service: MenuService, caplog: pytest.LogCaptureFixture
    ) -> None:
        service.get_or_compile("C")
        with caplog.at_level(logging.WARNING, logger="modemenu.registry"):
            collisions = service.bind("C", "Files", [("o", save_cmd, "open2")])

        assert [c.key for c in collisions] == ["o"]
        assert len(caplog.records) == 1
        assert "open_cmd" in caplog.records[0].getMessage()
        menu = service.get_or_compile("C")
        assert menu.lookup("o").command is open_cmd
        assert "open2" not in menu.doc_text

    def test_one_diagnostic_per_duplicate(
        self, service: MenuService, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="modemenu.registry"):
            service.bind("C", "Files", [("o", redo_cmd), ("s", redo_cmd), ("n", redo_cmd)])
        assert len(caplog.records) == 2
        assert [h.key for h in service.heads("C")] == ["o", "s", "u", "n"]

    def test_quit_key_cannot_be_bound(
        self, service: MenuService, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="modemenu.registry"):
            collisions = service.bind("C", "Files", [("escape", redo_cmd, "leave")])

        assert [(c.key, c.existing_command) for c in collisions] == [("escape", None)]
        assert "reserved" in caplog.text
        menu = service.get_or_compile("C")
        assert menu.keys().count("escape") == 1
        assert menu.lookup("escape").command is None
        assert "leave" not in menu.doc_text

    def test_configured_quit_keys_are_reserved(self) -> None:
        svc = MenuService(MenuConfig(quit_keys=("q", "escape")))
        collisions = svc.bind("C", "Files", [("q", save_cmd), ("ctrl+g", open_cmd)])
        assert [c.key for c in collisions] == ["q"]
        assert svc.get_or_compile("C").keys() == ["ctrl+g", "q", "escape"]


# ---------------------------------------------------------------------------
# Malformed bindings
# ---------------------------------------------------------------------------


class TestMalformedBindings:
    """A rejected batch leaves the context exactly as it was."""

    def test_bind_binds_nothing(self, formatter: CountingFormatter) -> None:
        svc = MenuService(head_formatter=formatter)
        svc.bind("C", "Files", [("o", open_cmd, "open")])
        first = svc.get_or_compile("C")

        with pytest.raises(ValueError):
            svc.bind("C", "Files", [("s", save_cmd, "save"), ("bad",)])

        assert [h.key for h in svc.heads("C")] == ["o"]
        menu = svc.get_or_compile("C")
        assert menu is not first
        assert menu.keys() == ["o", "escape", "ctrl+g"]
        assert "save" not in menu.doc_text

    def test_bind_into_new_context_creates_nothing(self) -> None:
        svc = MenuService()
        with pytest.raises(ValueError):
            svc.bind("C", "Files", [("o", open_cmd, 5)])
        assert svc.contexts() == []
        assert svc.get_or_compile("C") is None

    def test_define_keeps_previous_heads(self, service: MenuService) -> None:
        first = service.get_or_compile("C")

        with pytest.raises(ValueError):
            service.define("C", {"X": [("x", save_cmd, 5)]})

        assert [h.key for h in service.heads("C")] == ["o", "s", "u"]
        menu = service.get_or_compile("C")
        assert menu is not first
        assert menu.doc_text == first.doc_text
        assert "x" not in menu.keys()


# ---------------------------------------------------------------------------
# unbind_all / define / clear
# ---------------------------------------------------------------------------


class TestLifecycle:
    """Contexts can be replaced, dropped and cleared wholesale."""

    def test_unbind_all_then_not_found(self, service: MenuService) -> None:
        assert service.get_or_compile("C") is not None
        service.unbind_all("C")
        assert service.get_or_compile("C") is None
        assert "C" not in service.contexts()

    def test_define_replaces_heads(self, service: MenuService) -> None:
        old = service.get_or_compile("C")
        collisions = service.define(
            "C",
            {
                "Undo": [("u", undo_cmd, "undo"), ("r", redo_cmd, "redo")],
                "Files": [("o", open_cmd, "open")],
            },
        )
        assert collisions == []
        menu = service.get_or_compile("C")
        assert menu is not old
        assert menu.keys() == ["u", "r", "o", "escape", "ctrl+g"]
        assert menu.doc_text.index("Undo^^") < menu.doc_text.index("Files^^")

    def test_define_reports_collisions_across_columns(self) -> None:
        svc = MenuService()
        collisions = svc.define("C", {"A": [("k", open_cmd)], "B": [("k", save_cmd)]})
        assert [c.key for c in collisions] == ["k"]
        assert svc.get_or_compile("C").lookup("k").command is open_cmd

    def test_clear(self, service: MenuService) -> None:
        service.bind("D", "Misc", [("x", redo_cmd)])
        service.get_or_compile("C")
        service.clear()
        assert service.contexts() == []
        assert service.get_or_compile("C") is None

    def test_heads_oldest_first(self, service: MenuService) -> None:
        assert [h.key for h in service.heads("C")] == ["o", "s", "u"]
        assert service.heads("nope") == []


# ---------------------------------------------------------------------------
# activate
# ---------------------------------------------------------------------------


class TestActivate:
    """activate hands the compiled menu to the dispatcher or reports it missing."""

    def test_dispatches_compiled_menu(self) -> None:
        received: list[CompiledMenu] = []
        svc = MenuService(dispatcher=received.append)
        svc.bind("C", "Files", [("o", open_cmd, "open")])
        menu = svc.activate("C")
        assert received == [menu]
        assert menu is svc.get_or_compile("C")

    def test_missing_menu_notifies(self) -> None:
        missing: list[str] = []
        dispatched: list[CompiledMenu] = []
        svc = MenuService(dispatcher=dispatched.append, on_missing=missing.append)
        assert svc.activate("python") is None
        assert missing == ["python"]
        assert dispatched == []
        assert svc.get_or_compile("python") is None

    def test_missing_menu_logs_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        svc = MenuService()
        with caplog.at_level(logging.WARNING, logger="modemenu.service"):
            assert svc.activate("python") is None
        assert "No menu defined for 'python'" in caplog.text

    def test_without_dispatcher_returns_menu(self, service: MenuService) -> None:
        assert service.activate("C") is service.get_or_compile("C")
