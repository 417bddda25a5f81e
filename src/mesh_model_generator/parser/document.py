"""Decoding of RAML documents into plain Python structures."""

from pathlib import Path
from typing import Any

import yaml


def parse_document_to_object(text: str) -> Any:
    """Decode RAML (YAML) text. Raises yaml.YAMLError on malformed input."""
    return yaml.safe_load(text)


def load_document(file_path: Path) -> Any:
    """Read and decode a RAML file."""
    return parse_document_to_object(file_path.read_text(encoding="utf-8"))
