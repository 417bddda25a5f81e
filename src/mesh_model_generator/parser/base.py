"""Data models for parsed Mesh RAML documents.

The parser converts the decoded RAML into these models and the
renderers consume them. Field names are snake_case, the RAML / JSON
schema spellings are accepted as aliases.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from mesh_model_generator.errors import UnhandledCaseError

PrimitiveType = Literal["any", "boolean", "integer", "number", "string"]
RequestMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class Parameter(BaseModel):
    """A URL or query parameter as declared in the RAML."""

    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    display_name: str | None = Field(default=None, alias="displayName")
    type: Literal["boolean", "number", "string"] = "string"
    required: bool = False
    repeat: bool = False
    # RAML declares both as text, YAML may still decode them as numbers / booleans
    default: Any = None
    example: Any = None


class PrimitiveProperty(BaseModel):
    type: PrimitiveType
    description: str | None = None
    example: Any = None
    required: bool | None = None


class ArrayProperty(BaseModel):
    type: Literal["array"] = "array"
    description: str | None = None
    example: Any = None
    required: bool | None = None
    items: "PropertyDefinition"


class ObjectProperty(BaseModel):
    """An object schema. Named objects (with ``id``) become models."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["object"] = "object"
    description: str | None = None
    example: Any = None
    required: bool | None = None
    id: str | None = None
    ref: str | None = Field(default=None, alias="$ref")
    properties: dict[str, "PropertyDefinition"] = {}
    # Marks the object as a string-keyed hash of the described type
    additional_properties: "PropertyDefinition | None" = Field(default=None, alias="additionalProperties")


def to_property_definition(value: Any) -> Any:
    """Dispatch a raw schema mapping on its ``type`` tag.

    Model instances are returned as they are, so already normalized
    definitions keep their identity.
    """
    if isinstance(value, (PrimitiveProperty, ArrayProperty, ObjectProperty)):
        return value
    if not isinstance(value, Mapping):
        raise UnhandledCaseError(value)

    match value.get("type"):
        case "any" | "boolean" | "integer" | "number" | "string":
            return PrimitiveProperty.model_validate(value)
        case "array":
            items = value.get("items")
            # Array items sometimes reference an object without declaring its type
            if isinstance(items, Mapping) and not items.get("type") and items.get("$ref"):
                value = {**value, "items": {**items, "type": "object"}}
            return ArrayProperty.model_validate(value)
        case "object":
            hash_type = value.get("additionalProperties")
            if hash_type is True:
                value = {**value, "additionalProperties": {"type": "any"}}
            elif hash_type is False:
                value = {key: item for key, item in value.items() if key != "additionalProperties"}
            elif isinstance(hash_type, Mapping) and not hash_type.get("type"):
                value = {**value, "additionalProperties": {**hash_type, "type": "object"}}
            return ObjectProperty.model_validate(value)
        case _:
            raise UnhandledCaseError(dict(value), "type")


PropertyDefinition = Annotated[
    Union[PrimitiveProperty, ArrayProperty, ObjectProperty],
    BeforeValidator(to_property_definition),
]

ArrayProperty.model_rebuild()
ObjectProperty.model_rebuild()

ModelMap = dict[str, PropertyDefinition]


class RequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(alias="mimeType")
    example: Any = None
    body_schema: PropertyDefinition | None = Field(default=None, alias="schema")


class Response(BaseModel):
    """A parsed API response for one status code."""

    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    response_body_schema: PropertyDefinition | None = Field(default=None, alias="responseBodySchema")
    # Result of parsing the example of the RAML as JSON
    response_body_example: Any = Field(default=None, alias="responseBodyExample")


class Endpoint(BaseModel):
    """A single API endpoint (method + URL) with its request and responses."""

    model_config = ConfigDict(populate_by_name=True)

    method: RequestMethod
    url: str
    description: str = ""
    url_parameters: dict[str, Parameter] | None = Field(default=None, alias="urlParameters")
    query_parameters: dict[str, Parameter] | None = Field(default=None, alias="queryParameters")
    request_body: RequestBody | None = Field(default=None, alias="requestBody")
    responses: dict[int, Response] = {}


class CombinedResponseInfo(BaseModel):
    endpoint: Endpoint
    status_code: int
    response: Response


class ParsedRaml(BaseModel):
    """Result of parsing a Mesh RAML document."""

    model_config = ConfigDict(populate_by_name=True)

    base_uri: str = Field(default="", alias="baseUri")
    version: str = ""
    endpoints: list[Endpoint] = []
    models: ModelMap = {}
