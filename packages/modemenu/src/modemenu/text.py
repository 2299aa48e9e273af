"""Terminal text measurement: display width, padding and truncation.

Menu cells are aligned by the number of terminal columns they occupy, not by
``len()``.  Wide CJK characters take two columns, combining marks take none,
and ANSI SGR sequences are invisible.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# CSI SGR/cursor sequences and OSC 8 hyperlinks
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"
    r"|\x1b\]8;;[^\x07]*\x07"
)

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cluster_width(cluster: str) -> int:
    """Display width of one grapheme cluster."""
    if len(cluster) == 1:
        cp = ord(cluster)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(cluster), 0)

    for ch in cluster:
        cp = ord(ch)
        # VS16, ZWJ, skin tones, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = cluster[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first) in ("Mn", "Me", "Cf"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Return the number of terminal columns *text* occupies.

    ANSI escape sequences are ignored. Pure printable ASCII takes the fast
    path; everything else is measured per grapheme cluster and cached.
    """
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_cluster_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def pad_to_width(text: str, width: int, fill: str = " ") -> str:
    """Right-pad *text* with *fill* up to *width* columns.

    Text that is already as wide as *width* (or wider) is returned unchanged;
    padding never truncates.
    """
    missing = width - visible_width(text)
    if missing <= 0:
        return text
    return text + fill * missing


def repeat_to_width(char: str, width: int) -> str:
    """Return *char* repeated to fill exactly *width* columns."""
    char_width = visible_width(char)
    if char_width <= 0:
        msg = f"Fill character {char!r} has no display width"
        raise ValueError(msg)
    count, remainder = divmod(width, char_width)
    return char * count + " " * remainder


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Fit *text* into *max_width* columns.

    Overlong text is cut at a grapheme boundary and *ellipsis* appended (the
    ellipsis counts towards the width).  With *pad* the result is also
    right-padded to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    if visible_width(text) <= max_width:
        return pad_to_width(text, max_width) if pad else text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        result = _take_columns(ellipsis, max_width)
    else:
        result = _take_columns(text, target) + ellipsis

    return pad_to_width(result, max_width) if pad else result


def _take_columns(text: str, max_cols: int) -> str:
    """Longest grapheme prefix of *text* fitting in *max_cols* columns."""
    parts: list[str] = []
    cols = 0
    for g in grapheme.graphemes(_STRIP_RE.sub("", text)):
        w = _cluster_width(g)
        if cols + w > max_cols:
            break
        parts.append(g)
        cols += w
    return "".join(parts)
