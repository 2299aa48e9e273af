"""Menu configuration with JSON loading.

Field names are snake_case with camelCase aliases, so a config file reads::

    {"title": "Files", "columnSeparator": " | ", "quitKeys": ["q", "escape"]}
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modemenu.text import visible_width

DEFAULT_QUIT_KEYS = ("escape", "ctrl+g")


class MenuConfig(BaseModel):
    """Layout and post-processing options shared by every compiled menu."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str | None = None
    docstring_prefix: str = Field(default="", alias="docstringPrefix")
    separator: str = "-"
    column_separator: str = Field(default=" ", alias="columnSeparator")
    quit_keys: tuple[str, str] = Field(default=DEFAULT_QUIT_KEYS, alias="quitKeys")

    @field_validator("separator")
    @classmethod
    def _single_column_separator(cls, value: str) -> str:
        if visible_width(value) != 1:
            msg = f"separator must be exactly one column wide, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("quit_keys")
    @classmethod
    def _distinct_quit_keys(cls, value: tuple[str, str]) -> tuple[str, str]:
        if value[0] == value[1]:
            msg = f"quit keys must differ, got {value[0]!r} twice"
            raise ValueError(msg)
        return value


def load_menu_config(path: str | Path) -> MenuConfig:
    """Read a :class:`MenuConfig` from a JSON file; missing files yield defaults."""
    config_path = Path(path)
    if not config_path.exists():
        return MenuConfig()
    return MenuConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
