"""Text layout helpers shared by the renderers.

Word wrapping, indentation and formatting of plain values as
TypeScript/JavaScript literal source text.
"""

import json
import math
import re
from typing import Any

from mesh_model_generator.errors import UnhandledCaseError

SAFE_KEY_RE = re.compile(r"[a-zA-Z$_][a-zA-Z0-9$_]*")
WORD_RE = re.compile(r"(\s*)(\S+)")


def word_wrap(text: str | list[str], max_length: int) -> list[str]:
    """Wrap text at word bounds if it exceeds a maximum line length.

    Single words longer than ``max_length`` are never broken.
    Whitespace inside a line is preserved, whitespace at a wrap point is dropped.
    """
    if isinstance(text, list):
        result: list[str] = []
        for line in text:
            result.extend(word_wrap(line, max_length))
        return result
    if "\n" in text:
        return word_wrap(text.split("\n"), max_length)

    if not max_length or len(text) < max_length:
        return [text]

    lines: list[str] = []
    current: list[str] = []
    length = 0
    for match in WORD_RE.finditer(text):
        space, word = match.groups()
        if length and length + len(space) + len(word) > max_length:
            lines.append("".join(current))
            current = []
            length = 0

        if current:
            current.extend((space, word))
            length += len(space) + len(word)
        else:
            current.append(word)
            length += len(word)

    if current:
        lines.append("".join(current))
    return lines


def indent_lines(lines: list[str], indentation: str) -> list[str]:
    """Indent every non-empty line, empty lines stay empty."""
    return [indentation + line if line else "" for line in lines]


def format_as_object_key(key: str) -> str:
    """Format a string as an object key, quoting keys that are not identifiers.

    "abc" => abc, "some key" => 'some key', "a.b" => 'a.b'
    """
    if SAFE_KEY_RE.fullmatch(key):
        return key
    escaped = re.sub(r"([\\'])", r"\\\1", key)
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f"'{escaped}'"


def format_json(text: str, indentation: str = "    ") -> str:
    """Parse JSON text and format the result with :func:`format_value`."""
    return format_value(json.loads(text), indentation)


def format_value(value: Any, indentation: str = "    ") -> str:
    """Format a value as its JavaScript literal representation.

    Not safe to use on cyclic structures.
    """

    def nest(text: str) -> str:
        return text.replace("\n", "\n" + indentation)

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, str):
        quoted = json.dumps(value, ensure_ascii=False).replace("'", "\\'")
        return "'" + quoted[1:-1] + "'"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [nest(format_value(item, indentation)) for item in value]
        return "[\n" + indentation + (",\n" + indentation).join(items) + "\n]"
    if isinstance(value, dict):
        if not value:
            return "{ }"
        entries = [
            format_as_object_key(str(key)) + ": " + nest(format_value(item, indentation))
            for key, item in value.items()
        ]
        return "{\n" + indentation + (",\n" + indentation).join(entries) + "\n}"

    raise UnhandledCaseError(value)


def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return json.dumps(value)
