"""Column layout: turn groups of heads into an aligned multi-column text block.

A menu is laid out as columns side by side::

     Files^^      Edit^^
    ------------ ------------
     [_o_] open   [_u_] undo
     [_s_] save

Each column is as wide as its widest cell, every column is padded to the
same height, and rows are joined cell by cell.  ``_key_`` and ``^^`` are
display markup left for the host to interpret.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from modemenu.config import MenuConfig
from modemenu.text import pad_to_width, repeat_to_width, truncate_to_width, visible_width
from modemenu.types import (
    AbsentHint,
    Column,
    CompiledMenu,
    DynamicHint,
    Head,
    HeadBinding,
    TextHint,
)

logger = logging.getLogger(__name__)

HeadFormatter = Callable[[Head], str | None]
DocstringFormatter = Callable[[str], str]

# Room around a text hint: " [_", "_] " and one column of slack
TEXT_HINT_DECORATION = 7
# Minimum room reserved for a hint whose text is only known at display time
DYNAMIC_HINT_WIDTH = 17
# " " before the column name plus one column of slack
HEADER_DECORATION = 2

LineKind = Literal["header", "separator", "head", "filler"]


@dataclass(frozen=True)
class ColumnLine:
    """One rendered row of a column, already padded to the column width."""

    text: str
    kind: LineKind

    @property
    def is_filler(self) -> bool:
        return self.kind == "filler"

    def __str__(self) -> str:
        return self.text


# ---------------------------------------------------------------------------
# Width calculator
# ---------------------------------------------------------------------------


def head_width(head: Head) -> int:
    """Columns a single head needs in its rendered cell."""
    hint = head.hint
    if isinstance(hint, TextHint):
        return TEXT_HINT_DECORATION + visible_width(head.key) + visible_width(hint.text)
    if isinstance(hint, DynamicHint):
        # The "?key?" placeholder must fit even when the key is long
        placeholder = TEXT_HINT_DECORATION + 2 * visible_width(head.key) + 2
        return max(DYNAMIC_HINT_WIDTH, placeholder)
    return 0


def column_width(name: str, heads: Sequence[Head]) -> int:
    """Minimum render width of a column named *name* holding *heads*."""
    return max([HEADER_DECORATION + visible_width(name), *(head_width(h) for h in heads)])


# ---------------------------------------------------------------------------
# Head formatter
# ---------------------------------------------------------------------------


def format_head(head: Head) -> str | None:
    """Default head formatter.

    Returns ``None`` for heads that should not appear in the menu text.
    """
    hint = head.hint
    if isinstance(hint, TextHint):
        return f" [_{head.key}_] {hint.text}"
    if isinstance(hint, DynamicHint):
        return f" [_{head.key}_] ?{head.key}?"
    if isinstance(hint, AbsentHint):
        return None
    msg = f"Unknown hint type for key {head.key!r}: {hint!r}"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Column renderer
# ---------------------------------------------------------------------------


def render_column(
    name: str,
    heads: Sequence[Head],
    max_rows: int,
    *,
    head_formatter: HeadFormatter = format_head,
    separator: str = "-",
) -> list[ColumnLine]:
    """Render one column as exactly ``max_rows + 2`` padded lines.

    The header and separator come first, then one line per head the
    formatter emits, then filler rows up to *max_rows*.
    """
    width = column_width(name, heads)

    # "^^" is display markup, so a header wider than every head runs one
    # column past *width*; lines are padded but never cut
    lines = [
        ColumnLine(pad_to_width(f" {name}^^", width), "header"),
        ColumnLine(repeat_to_width(separator, width), "separator"),
    ]

    rows = 0
    for head in heads:
        text = head_formatter(head)
        if text is None:
            continue
        if "\n" in text:
            msg = f"Head formatter returned more than one line for key {head.key!r}"
            raise ValueError(msg)
        lines.append(ColumnLine(pad_to_width(text, width), "head"))
        rows += 1

    if rows > max_rows:
        msg = f"Column {name!r} renders {rows} rows, more than max_rows={max_rows}"
        raise ValueError(msg)

    filler = " " * width
    lines.extend(ColumnLine(filler, "filler") for _ in range(max_rows - rows))
    return lines


# ---------------------------------------------------------------------------
# Menu composer
# ---------------------------------------------------------------------------


def compose_menu(
    columns: Sequence[Column],
    *,
    head_formatter: HeadFormatter = format_head,
    separator: str = "-",
    column_separator: str = " ",
) -> str:
    """Lay *columns* out side by side and return the menu text.

    The result starts and ends with a newline.
    """
    if not columns:
        msg = "Cannot compose a menu without columns"
        raise ValueError(msg)

    max_rows = max(len(column.heads) for column in columns)
    rendered = [
        render_column(
            column.name,
            column.heads,
            max_rows,
            head_formatter=head_formatter,
            separator=separator,
        )
        for column in columns
    ]

    rows = [column_separator.join(line.text for line in row) for row in zip(*rendered)]
    return "\n" + "\n".join(rows) + "\n"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def postprocess_docstring(
    text: str,
    config: MenuConfig,
    docstring_formatter: DocstringFormatter | None = None,
) -> str:
    """Prepend title and prefix, apply the formatter, force a leading newline."""
    prefix = config.docstring_prefix
    if config.title is not None:
        prefix = f"{config.title}\n{prefix}" if prefix else config.title
    doc = prefix + text
    if docstring_formatter is not None:
        doc = docstring_formatter(doc)
    if not doc.startswith("\n"):
        doc = "\n" + doc
    return doc


def build_menu(
    columns: Sequence[Column],
    *,
    config: MenuConfig | None = None,
    head_formatter: HeadFormatter | None = None,
    docstring_formatter: DocstringFormatter | None = None,
) -> CompiledMenu:
    """Compile a menu definition into text plus its key table.

    The configured quit keys are appended to the key table without being
    rendered; a head bound to one of them raises ``ValueError``.
    """
    config = config or MenuConfig()
    body = compose_menu(
        columns,
        head_formatter=head_formatter or format_head,
        separator=config.separator,
        column_separator=config.column_separator,
    )

    heads = tuple(head for column in columns for head in column.heads)
    reserved = [h.key for h in heads if h.key in config.quit_keys]
    if reserved:
        msg = f"Keys {reserved!r} are reserved for leaving the menu"
        raise ValueError(msg)
    bindings = [HeadBinding(h.key, h.command, dict(h.options)) for h in heads]
    bindings.extend(HeadBinding(key, None, {"exit": True}) for key in config.quit_keys)

    logger.debug("Built menu with %d columns and %d heads", len(columns), len(heads))
    return CompiledMenu(
        doc_text=postprocess_docstring(body, config, docstring_formatter),
        head_bindings=tuple(bindings),
        heads=heads,
    )


# ---------------------------------------------------------------------------
# Dynamic hints
# ---------------------------------------------------------------------------


def fill_dynamic_hints(menu: CompiledMenu) -> str:
    """Return the menu text with every ``?key?`` placeholder evaluated.

    Each value is fitted to the room reserved for dynamic hints, eating into
    the cell's trailing padding so the following columns keep their place.
    """
    doc = menu.doc_text
    for head in menu.heads:
        if not isinstance(head.hint, DynamicHint):
            continue
        placeholder = f"?{head.key}?"
        placeholder_width = visible_width(placeholder)
        room = max(
            placeholder_width,
            DYNAMIC_HINT_WIDTH - TEXT_HINT_DECORATION - visible_width(head.key),
        )
        value = truncate_to_width(str(head.hint.ref()), room, pad=True)
        pattern = re.compile(
            r"(\[_%s_\] )%s( {0,%d})"
            % (re.escape(head.key), re.escape(placeholder), room - placeholder_width)
        )
        doc = pattern.sub(lambda m, v=value: m.group(1) + v, doc, count=1)
    return doc
