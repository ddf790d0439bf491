"""
Layout file loading and validation.
Turns TOML text into a LayoutDescriptor, or a ConfigError naming what is wrong.
"""

import json
import logging
import os
import re
import tomllib
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from lofiturtle.core.defaults import DEFAULT_LAYOUT_TOML
from lofiturtle.core.descriptor import LayoutDescriptor, Length, Percentage, WidgetSpec
from lofiturtle.core.errors import ConfigError, ConfigIOError, ParseError, ValidationError
from lofiturtle.core.keybindings import KeybindingError, merge_keybindings

logger = logging.getLogger(__name__)

_TOML_POSITION = re.compile(r"\(at line (\d+), column (\d+)\)")


def parse_layout(text: str) -> LayoutDescriptor:
    """
    Parses and validates layout TOML.

    Raises:
        ParseError: the text is not valid TOML.
        ValidationError: the TOML does not describe a valid layout.
    """
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        message = str(e)
        match = _TOML_POSITION.search(message)
        if match:
            raise ParseError(message, line=int(match.group(1)), column=int(match.group(2))) from e
        raise ParseError(message) from e

    return build_descriptor(raw)


def build_descriptor(raw: Dict[str, Any]) -> LayoutDescriptor:
    """Validates an already-decoded mapping into a descriptor."""
    data = dict(raw)
    data.pop("descriptor_id", None)
    widgets = data.get("widgets", [])
    if not isinstance(widgets, list):
        raise ValidationError("expected an array of [[widgets]] tables", field="widgets")

    try:
        data["keybindings"] = merge_keybindings(data.get("keybindings"))
    except KeybindingError as e:
        raise ValidationError(str(e), field=f"keybindings.{e.key}") from e
    except AttributeError as e:
        raise ValidationError("expected a table of key = action pairs", field="keybindings") from e

    try:
        descriptor = LayoutDescriptor(**data)
    except PydanticValidationError as e:
        raise _translate_validation_error(e, widgets) from e

    seen = set()
    for widget in descriptor.widgets:
        if widget.name in seen:
            raise ValidationError(
                f"Duplicate widget name: {widget.name}", widget=widget.name, field="name"
            )
        seen.add(widget.name)

    if descriptor.widgets and not descriptor.visible_widgets():
        logger.warning(f"Layout '{descriptor.name}' declares no visible widgets.")
    return descriptor


def _translate_validation_error(error: PydanticValidationError, widgets: List[Any]) -> ValidationError:
    """Reports the first pydantic error with the offending widget name and field path."""
    first = error.errors()[0]
    loc = list(first.get("loc", ()))
    message = first.get("msg", "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    widget_name = None
    if len(loc) >= 2 and loc[0] == "widgets" and isinstance(loc[1], int):
        idx = loc[1]
        entry = widgets[idx] if idx < len(widgets) else None
        if isinstance(entry, dict) and isinstance(entry.get("name"), str):
            widget_name = entry["name"]
        label = widget_name if widget_name else f"#{idx}"
        field_path = f"widgets[{label}]" + "".join(f".{part}" for part in loc[2:])
    else:
        field_path = ".".join(str(part) for part in loc) or None

    if first.get("type") == "enum" and "input" in first:
        message = f"{message} (got {first['input']!r})"
    return ValidationError(message, widget=widget_name, field=field_path)


def load_layout(path: str) -> LayoutDescriptor:
    """
    Reads and parses a layout file.

    Raises:
        ConfigIOError: the file is missing or unreadable.
        ParseError, ValidationError: see parse_layout.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigIOError(f"Layout file not found: {path}") from e
    except (IOError, OSError, UnicodeDecodeError) as e:
        raise ConfigIOError(f"Could not read layout file {path}: {e}") from e
    return parse_layout(text)


def default_descriptor() -> LayoutDescriptor:
    """Parses the embedded default layout."""
    return parse_layout(DEFAULT_LAYOUT_TOML)


def load_or_default(
    path: Optional[str], previous: Optional[LayoutDescriptor] = None
) -> Tuple[LayoutDescriptor, Optional[ConfigError]]:
    """
    Loads `path` without ever failing.

    A missing file is informational and yields the embedded default. Any other
    failure keeps `previous` when given, else falls back to the embedded default.
    The second element is the error that forced a fallback, if any.
    """
    if not path:
        logger.info("No layout file configured; using the embedded default layout.")
        return default_descriptor(), None

    try:
        descriptor = load_layout(path)
        logger.info(f"Layout '{descriptor.name}' loaded from {path}.")
        return descriptor, None
    except ConfigIOError as e:
        if not os.path.exists(path):
            logger.info(f"{e}. Using the embedded default layout.")
            return default_descriptor(), None
        logger.error(f"{e}. Using the embedded default layout.")
        return default_descriptor(), e
    except ConfigError as e:
        if previous is not None:
            logger.error(f"Layout load failed: {e}. Keeping the active layout.")
            return previous, e
        logger.error(f"Layout load failed: {e}. Using the embedded default layout.")
        return default_descriptor(), e


def resolve_layout_path(cli_path: Optional[str], configured_path: Optional[str]) -> Optional[str]:
    """Picks the --layout-config path, else the conventional configured filename."""
    candidate = cli_path or configured_path
    if not candidate:
        return None
    return os.path.abspath(os.path.expanduser(candidate))


# --- Serialization ---

def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return _toml_string(str(value))


def _toml_string(value: str) -> str:
    # JSON escaping is a subset of TOML basic strings, except that TOML also forbids a raw DEL.
    return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")


def _toml_key(key: str) -> str:
    if re.fullmatch(r"[A-Za-z0-9_-]+", key):
        return key
    return _toml_string(key)


def _toml_size(widget: WidgetSpec) -> str:
    if isinstance(widget.size, Percentage):
        return f"{{ percentage = {widget.size.percentage} }}"
    if isinstance(widget.size, Length):
        return f"{{ length = {widget.size.length} }}"
    return '"fill"'


def descriptor_to_toml(descriptor: LayoutDescriptor) -> str:
    """Renders a descriptor back into layout TOML that parses to an equivalent layout."""
    lines = [
        f"version = {_toml_value(descriptor.version)}",
        f"name = {_toml_value(descriptor.name)}",
    ]
    if descriptor.description is not None:
        lines.append(f"description = {_toml_value(descriptor.description)}")

    lines += ["", "[theme]", f"name = {_toml_value(descriptor.theme.name)}"]
    colors = {k: v for k, v in descriptor.theme.colors.items() if isinstance(v, (str, int))}
    if colors:
        lines += ["", "[theme.colors]"]
        lines += [f"{_toml_key(k)} = {_toml_value(v)}" for k, v in colors.items()]

    for widget in descriptor.widgets:
        lines += [
            "",
            "[[widgets]]",
            f"name = {_toml_value(widget.name)}",
            f"type = {_toml_value(widget.widget_type.value)}",
            f"position = {_toml_value(widget.position.value)}",
            f"size = {_toml_size(widget)}",
            f"visible = {_toml_value(widget.visible)}",
            f"border = {_toml_value(widget.border)}",
        ]
        if widget.title is not None:
            lines.append(f"title = {_toml_value(widget.title)}")
        style = widget.style.model_dump(exclude_none=True)
        if style:
            pairs = ", ".join(f"{k} = {_toml_value(v)}" for k, v in style.items())
            lines.append(f"style = {{ {pairs} }}")

    lines += ["", "[keybindings]"]
    lines += [f"{_toml_key(k)} = {_toml_value(v)}" for k, v in descriptor.keybindings.items()]

    settings = descriptor.settings
    responsive = settings.responsive
    lines += [
        "",
        "[settings]",
        f"auto_save = {_toml_value(settings.auto_save)}",
        f"debounce_ms = {settings.debounce_ms}",
        "",
        "[settings.responsive]",
        f"small_width = {responsive.small_width}",
        f"medium_width = {responsive.medium_width}",
        f"large_width = {responsive.large_width}",
        f"collapse_sidebars = {_toml_value(responsive.collapse_sidebars)}",
    ]
    return "\n".join(lines) + "\n"


def save_layout(descriptor: LayoutDescriptor, path: str):
    """Writes a descriptor to `path` as TOML."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(descriptor_to_toml(descriptor))
    except (IOError, OSError) as e:
        raise ConfigIOError(f"Could not write layout file {path}: {e}") from e
    logger.info(f"Layout '{descriptor.name}' written to {path}.")
