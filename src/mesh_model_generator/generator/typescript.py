"""Renders parsed RAML models as TypeScript interface declarations."""

import logging
import math
import re
from collections.abc import Callable, Mapping
from typing import Any

from mesh_model_generator.errors import UnhandledCaseError
from mesh_model_generator.generator.options import RendererOptions
from mesh_model_generator.parser.base import (
    ArrayProperty,
    CombinedResponseInfo,
    Endpoint,
    ModelMap,
    ObjectProperty,
    Parameter,
    ParsedRaml,
    PrimitiveProperty,
    PropertyDefinition,
)
from mesh_model_generator.text import format_as_object_key, format_value, indent_lines, word_wrap

logger = logging.getLogger(__name__)

FILE_HEAD = (
    "// Auto-generated from the RAML for Version {version} of the Gentics Mesh REST API.\n"
    "\n"
    "export type Integer = number;\n"
    "\n"
)

MODEL_NAMESPACE_RE = re.compile(r"^urn:jsonschema:com:([a-z]+:)*")
IDENTIFIER_RE = re.compile(r"[A-Za-z$_][A-Za-z0-9$_]*")
SENTENCE_END_RE = re.compile(r"\. (?!\()")
SENTENCE_TERMINATOR_RE = re.compile(r"(\. ?)|(\n)|$")
INLINE_EXAMPLE_RE = re.compile(r" \*\n \* @example\n \* ")

# " * " in front of every line of a doc comment
JSDOC_DECORATION = 3

UNTYPED = "any; // Not typed in the RAML"

ModelFilter = Callable[[ObjectProperty, ModelMap], bool]


class TypescriptModelRenderer:
    """Renders the request/response models as TypeScript interfaces."""

    def __init__(self, options: RendererOptions | None = None, **overrides: Any):
        self.options = (options or RendererOptions()).merged(**overrides)

    def render_all(self, raml: ParsedRaml) -> str:
        """Render the file head, the optional endpoint list and all model interfaces."""
        if not raml.endpoints and not raml.models:
            return ""

        parts = [
            self.generate_endpoint_list(raml) if self.options.add_endpoint_list else "",
            self.generate_interfaces(raml),
        ]
        body = "\n".join(part for part in parts if part)
        return self.file_head(raml.version) + body if body else ""

    def file_head(self, version: str) -> str:
        return FILE_HEAD.format(version=version)

    # -- endpoint list --------------------------------------------------------

    def generate_endpoint_list(self, raml: ParsedRaml) -> str:
        """Generate an interface that lists all API endpoints and their request & response models."""
        lines: list[str] = []

        for method, endpoints in self.group_endpoints_by_method(raml.endpoints).items():
            url_lines: list[str] = []
            for url, same_url in self.group_endpoints_by_url(endpoints).items():
                for endpoint in same_url:
                    url_lines += [
                        *self.generate_jsdoc(description=endpoint.description),
                        format_as_object_key(url) + ": {",
                        *self.indent(self.format_endpoint_interface(endpoint)),
                        "};",
                    ]

            if url_lines:
                lines += [method + ": {", *self.indent(url_lines), "};"]
            else:
                lines.append(method + ": { };")

        return "\n".join([
            "/** List of all API endpoints and their types */",
            f"export interface {self.options.endpoint_interface} {{",
            *self.indent(lines),
            "}\n",
        ])

    def group_endpoints_by_method(self, endpoints: list[Endpoint]) -> dict[str, list[Endpoint]]:
        """Group endpoints by method in method sort order, each group sorted by URL."""
        grouped: dict[str, list[Endpoint]] = {method: [] for method in self.options.method_sort_order}
        for endpoint in endpoints:
            grouped.setdefault(endpoint.method, []).append(endpoint)

        for group in grouped.values():
            group.sort(key=lambda endpoint: endpoint.url)
        return grouped

    def group_endpoints_by_url(self, endpoints: list[Endpoint]) -> dict[str, list[Endpoint]]:
        """Group endpoints by URL in URL order, each group sorted by method sort order."""
        grouped: dict[str, list[Endpoint]] = {url: [] for url in sorted({e.url for e in endpoints})}
        for endpoint in endpoints:
            grouped[endpoint.url].append(endpoint)

        for group in grouped.values():
            group.sort(key=lambda endpoint: self._method_rank(endpoint.method))
        return grouped

    def format_endpoint_interface(self, endpoint: Endpoint) -> list[str]:
        """Format the request and response types of one endpoint."""
        request_lines = [
            *self.format_parameters(endpoint.url_parameters, "urlParams"),
            *self.format_parameters(endpoint.query_parameters, "queryParams"),
        ]

        body = endpoint.request_body
        body_schema = body.body_schema if body else None
        body_optional = body_schema is None or (
            isinstance(body_schema, ObjectProperty) and _all_optional(body_schema.properties)
        )

        if body_schema is None:
            request_lines.append("body?: undefined;")
        else:
            if self.options.emit_request_examples and body.example is not None:
                request_lines += self.generate_jsdoc(example=self.format_request_example(body.example))
            optional_text = "?" if body_optional else ""
            request_lines.append(f"body{optional_text}: {self.render_request_body_type(body_schema)};")

        all_optional = (
            body_optional
            and _all_optional(endpoint.url_parameters)
            and _all_optional(endpoint.query_parameters)
        )
        lines = [
            "request?: {" if all_optional else "request: {",
            *self.indent(request_lines),
            "};",
        ]

        # Find all types that can be returned by the endpoint
        response_types: list[str] = []
        status_lines: list[str] = []
        typed_responses = 0

        for status_code in sorted(endpoint.responses):
            response = endpoint.responses[status_code]
            if response.response_body_schema is not None:
                response_type = self.render_property_definition(response.response_body_schema)
                typed_responses += 1
            else:
                response_type = "undefined"

            if response_type not in response_types:
                response_types.append(response_type)
            status_lines += [
                *self.generate_jsdoc(description=response.description),
                f"{status_code}: {response_type};",
            ]

        if not typed_responses:
            lines += [
                "responseType: " + UNTYPED,
                "responseTypes: {",
                self.options.indentation + "200: " + UNTYPED,
                "};",
            ]
        else:
            lines += [
                "responseType: " + " | ".join(response_types) + ";",
                "responseTypes: {",
                *self.indent(status_lines),
                "};",
            ]

        return lines

    def format_parameters(self, params: Mapping[str, Parameter] | None, result_key: str) -> list[str]:
        """Format url parameters / query parameters as a TypeScript object type."""
        if not params:
            return [result_key + "?: undefined;"]

        optional_text = "?" if _all_optional(params) else ""
        lines = [result_key + optional_text + ": {"]

        for name, param in params.items():
            default_value, example_text = _parameter_values(param)
            jsdoc = self.generate_jsdoc(
                description=param.description,
                default_value=default_value,
                example=example_text if self.options.emit_request_examples else "",
            )
            jsdoc = INLINE_EXAMPLE_RE.sub(" * @example ", "\n".join(jsdoc)).split("\n") if jsdoc else []

            key_text = format_as_object_key(name) + ("" if param.required else "?")
            type_text = f"{param.type} | {param.type}[]" if param.repeat else param.type
            lines += self.indent([*jsdoc, f"{key_text}: {type_text};"])

        lines.append("};")
        return lines

    def render_request_body_type(self, schema: PropertyDefinition) -> str:
        """Render a request body type. Anonymous objects (e.g. multipart forms) are rendered inline."""
        if (
            isinstance(schema, ObjectProperty)
            and not (schema.id or schema.ref)
            and schema.additional_properties is None
        ):
            fields = [
                format_as_object_key(name) + ("" if prop.required else "?") + ": "
                + self.render_property_definition(prop) + ";"
                for name, prop in schema.properties.items()
            ]
            return "{ " + " ".join(fields) + " }" if fields else "{ }"
        return self.render_property_definition(schema)

    # -- model interfaces -----------------------------------------------------

    def generate_interfaces(self, raml: ParsedRaml, model_filter: ModelFilter | None = None) -> str:
        """Generate the interfaces for all models of the parsed RAML.

        ``model_filter`` works like the predicate of the builtin ``filter``.
        """
        model_refs = list(raml.models)
        if self.options.sort_interfaces:
            model_refs.sort(key=self.generate_model_name)

        lines: list[str] = []
        for model_ref in model_refs:
            model = raml.models[model_ref]
            if not isinstance(model, ObjectProperty):
                continue
            if model_filter is not None and not model_filter(model, raml.models):
                continue

            example = ""
            if self.options.emit_response_examples:
                response_example = next(
                    (
                        info.response.response_body_example
                        for info in self.endpoints_with_response_type(model, raml.endpoints)
                        if info.response.response_body_example not in (None, "")
                    ),
                    None,
                )
                if response_example is not None:
                    example = self.format_response_example(response_example)

            responses: list[CombinedResponseInfo] = []
            if self.options.emit_request_urls:
                responses = self.sort_endpoints_for_jsdoc(self.endpoints_with_response_type(model, raml.endpoints))

            logger.debug("Rendering model %s", model_ref)
            lines += [
                *self.generate_jsdoc(description=model.description, example=example, responses=responses),
                f"export interface {self.generate_model_name(model_ref)} {{",
                *self.render_properties(model.properties),
                "}\n",
            ]

        return "\n".join(lines)

    def endpoints_with_response_type(
        self, schema: PropertyDefinition, endpoints: list[Endpoint]
    ) -> list[CombinedResponseInfo]:
        """Return all endpoints that return the passed schema for any status code."""
        model_id = schema.id if isinstance(schema, ObjectProperty) else None
        found: list[CombinedResponseInfo] = []

        for endpoint in endpoints:
            for status_code in sorted(endpoint.responses):
                response = endpoint.responses[status_code]
                body = response.response_body_schema
                if body is None:
                    continue
                if body is schema or (
                    model_id and isinstance(body, ObjectProperty) and model_id in (body.ref, body.id)
                ):
                    found.append(CombinedResponseInfo(endpoint=endpoint, status_code=status_code, response=response))

        return found

    def generate_model_name(self, schema_ref: str) -> str:
        """Generate the interface name of a model reference.

        "urn:jsonschema:com:gentics:mesh:core:rest:user:UserCreateRequest" => "UserCreateRequest"
        """
        short_name = MODEL_NAMESPACE_RE.sub("", schema_ref, count=1)
        return self.format_model_name(short_name, schema_ref)

    def format_model_name(self, short_name: str, full_schema_ref: str) -> str:
        """Add prefix and suffix to an interface name. Subclasses may add conditional logic."""
        return self.options.interface_prefix + short_name + self.options.interface_suffix

    def format_request_example(self, example: Any) -> str:
        return format_value(example, self.options.indentation)

    def format_response_example(self, example: Any) -> str:
        return format_value(example, self.options.indentation)

    # -- doc comments ---------------------------------------------------------

    def generate_jsdoc(
        self,
        description: str | None = None,
        default_value: Any = None,
        example: Any = None,
        responses: list[CombinedResponseInfo] | None = None,
    ) -> list[str]:
        """Return the lines of a JsDoc comment for the passed information."""
        responses = self.sort_endpoints_for_jsdoc(responses) if responses else None

        if not description and not example and not responses:
            return []

        if default_value is not None and description:
            default_text = format_value(default_value)
            description = SENTENCE_TERMINATOR_RE.sub(
                lambda match: f" (default: {default_text}){match.group(0)}", description, count=1
            )

        description_lines = self.layout_description(description) if description else []

        if not example and not responses and len(description_lines) == 1:
            return ["/** " + description_lines[0] + " */"]

        lines = list(description_lines)
        if description and responses:
            lines.append("")

        if responses:
            if len(responses) == 1:
                endpoint = responses[0].endpoint
                lines.append(f"Returned for `{endpoint.method} {endpoint.url}`")
            else:
                list_indentation = re.sub(r"  $", "", self.options.indentation)
                lines.append("Returned for:")
                lines += [
                    f"{list_indentation}- `{info.endpoint.method} {info.endpoint.url}`" for info in responses
                ]

        if (description or responses) and example:
            lines.append("")

        if example:
            if not isinstance(example, str):
                example = format_value(example, self.options.indentation)
            lines += ["@example", *example.split("\n")]

        return ["/**", *(" * " + line if line else " *" for line in lines), " */"]

    def layout_description(self, description: str) -> list[str]:
        """Break a description at newlines and sentence ends, then wrap long lines."""
        lines = SENTENCE_END_RE.sub(".\n", description).split("\n")
        return word_wrap(lines, self.wrap_width)

    @property
    def wrap_width(self) -> int:
        if self.options.max_line_length <= 0:
            return 0
        width = self.options.max_line_length - len(self.options.indentation) - JSDOC_DECORATION
        return max(width, 1)

    def sort_endpoints_for_jsdoc(self, responses: list[CombinedResponseInfo]) -> list[CombinedResponseInfo]:
        """Sort responses by (method, url) and drop duplicate method + url pairs."""
        ordered = sorted(
            responses,
            key=lambda info: (self._method_rank(info.endpoint.method), info.endpoint.url),
        )

        unique: list[CombinedResponseInfo] = []
        seen: set[tuple[str, str]] = set()
        for info in ordered:
            key = (info.endpoint.method, info.endpoint.url)
            if key not in seen:
                seen.add(key)
                unique.append(info)
        return unique

    # -- properties -----------------------------------------------------------

    def render_properties(self, props: Mapping[str, PropertyDefinition]) -> list[str]:
        lines: list[str] = []
        keys = sorted(props) if self.options.sort_keys else list(props)

        for key in keys:
            prop = props[key]
            if prop.description:
                lines += self.generate_jsdoc(description=prop.description, example=prop.example)

            readonly_text = "readonly " if self.options.emit_interfaces_as_readonly else ""
            separator = ": " if prop.required else "?: "
            value_text = self.render_property_definition(prop)
            lines.append(readonly_text + format_as_object_key(key) + separator + value_text + ";")

        return self.indent(lines)

    def render_property_definition(self, prop: PropertyDefinition) -> str:
        match prop:
            case PrimitiveProperty(type="integer"):
                return self.options.emit_integer_as or "number"
            case PrimitiveProperty():
                return prop.type
            case ArrayProperty():
                item_type = self.render_property_definition(prop.items)
                if IDENTIFIER_RE.fullmatch(item_type):
                    return item_type + "[]"
                return "Array<" + item_type + ">"
            case ObjectProperty():
                schema_ref = prop.id or prop.ref
                if schema_ref:
                    return self.generate_model_name(schema_ref)
                if prop.additional_properties is not None:
                    hash_type = self.render_property_definition(prop.additional_properties)
                    return "{ [key: string]: " + hash_type + " }"
                # Neither a model nor a hash, there is no name to render
                raise UnhandledCaseError(prop.model_dump(exclude_none=True), "id")
            case _:
                raise UnhandledCaseError(prop, "type")

    def indent(self, lines: list[str]) -> list[str]:
        """Indent lines with the indentation of the renderer options."""
        return indent_lines(lines, self.options.indentation)

    def _method_rank(self, method: str) -> int:
        order = self.options.method_sort_order
        return order.index(method) if method in order else len(order)


def _all_optional(items: Mapping[str, Any] | None) -> bool:
    return not items or not any(item.required for item in items.values())


def _parameter_values(param: Parameter) -> tuple[Any, str]:
    """Return (default value, example text) of a parameter, coerced to its declared type.

    RAML declares default and example values as text also for numbers and booleans.
    """
    match param.type:
        case "number":
            convert = _to_number
        case "boolean":
            convert = _to_boolean
        case _:
            convert = str

    default_value = convert(param.default) if param.default is not None else None
    example_text = format_value(convert(param.example)) if param.example is not None else ""
    return default_value, example_text


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return math.nan
    return int(number) if number.is_integer() else number


def _to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)
