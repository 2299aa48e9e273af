"""modemenu: multi-column key menus with a per-context binding registry."""

# Configuration
from modemenu.config import DEFAULT_QUIT_KEYS, MenuConfig, load_menu_config

# Layout
from modemenu.layout import (
    DYNAMIC_HINT_WIDTH,
    ColumnLine,
    build_menu,
    column_width,
    compose_menu,
    fill_dynamic_hints,
    format_head,
    render_column,
)

# Registry and cache
from modemenu.registry import BindingRegistry, CompiledCache, RegistryEntry

# Service
from modemenu.service import MenuService

# Text measurement
from modemenu.text import pad_to_width, truncate_to_width, visible_width

# Types
from modemenu.types import (
    ABSENT,
    AbsentHint,
    Binding,
    Column,
    CompiledMenu,
    DynamicHint,
    Head,
    HeadBinding,
    Hint,
    KeyCollision,
    TextHint,
)

__all__ = [
    "ABSENT",
    "AbsentHint",
    "Binding",
    "BindingRegistry",
    "Column",
    "ColumnLine",
    "CompiledCache",
    "CompiledMenu",
    "DEFAULT_QUIT_KEYS",
    "DYNAMIC_HINT_WIDTH",
    "DynamicHint",
    "Head",
    "HeadBinding",
    "Hint",
    "KeyCollision",
    "MenuConfig",
    "MenuService",
    "RegistryEntry",
    "TextHint",
    "build_menu",
    "column_width",
    "compose_menu",
    "fill_dynamic_hints",
    "format_head",
    "load_menu_config",
    "pad_to_width",
    "render_column",
    "truncate_to_width",
    "visible_width",
]
