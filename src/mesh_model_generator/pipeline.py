"""Parse a Mesh RAML document and generate TypeScript declarations in one call."""

from collections.abc import Mapping
from typing import Any

from mesh_model_generator.generator.options import RendererOptions
from mesh_model_generator.generator.typescript import TypescriptModelRenderer
from mesh_model_generator.parser.raml import MeshRamlParser


def generate_declarations(
    document: str | Mapping,
    options: RendererOptions | Mapping[str, Any] | None = None,
) -> str:
    """Parse RAML text (or a decoded RAML document) and render its models as TypeScript.

    For more fine-tuned generation, use MeshRamlParser and TypescriptModelRenderer directly.
    Returns an empty string when the document has neither endpoints nor models.
    """
    if isinstance(options, Mapping):
        options = RendererOptions.model_validate(options)

    parser = MeshRamlParser()
    renderer = TypescriptModelRenderer(options)

    parsed = parser.parse_raml(document)
    return renderer.render_all(parsed)


parse_and_generate = generate_declarations
