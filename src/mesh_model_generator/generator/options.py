"""Renderer configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from mesh_model_generator.errors import InvalidInputError


class RendererOptions(BaseModel):
    """Options of the TypeScript renderer.

    Unspecified options keep their defaults. The camelCase names used in
    config files of the original tool are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    add_endpoint_list: bool = Field(default=False, alias="addEndpointList")
    emit_integer_as: str = Field(default="Integer", alias="emitIntegerAs")
    emit_interfaces_as_readonly: bool = Field(default=False, alias="emitInterfacesAsReadonly")
    emit_request_examples: bool = Field(default=True, alias="emitRequestExamples")
    emit_request_urls: bool = Field(default=False, alias="emitRequestURLs")
    emit_response_examples: bool = Field(default=False, alias="emitResponseExamples")
    endpoint_interface: str = Field(default="ApiEndpoints", alias="endpointInterface")
    indentation: str = "    "
    interface_prefix: str = Field(default="", alias="interfacePrefix")
    interface_suffix: str = Field(default="", alias="interfaceSuffix")
    max_line_length: int = Field(default=100, alias="maxLineLength")
    method_sort_order: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE"], alias="methodSortOrder"
    )
    sort_interfaces: bool = Field(default=True, alias="sortInterfaces")
    sort_keys: bool = Field(default=True, alias="sortKeys")

    def merged(self, **overrides) -> "RendererOptions":
        """Return a copy with the given options replaced. ``None`` values are ignored."""
        update = {key: value for key, value in overrides.items() if value is not None}
        return RendererOptions.model_validate({**self.model_dump(), **update})


def load_options(file_path: Path) -> RendererOptions:
    """Load renderer options from a YAML file."""
    data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise InvalidInputError(f"Options file {file_path} must contain a mapping")
    return RendererOptions.model_validate(data)
