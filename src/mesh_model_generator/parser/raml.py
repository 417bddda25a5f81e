"""Gentics Mesh RAML parser.

Walks the endpoint tree of a decoded RAML document, parses the inline
JSON schemas of request and response bodies and flattens nested object
schemas into a map of named models.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from mesh_model_generator.errors import InvalidInputError, MissingUriParameterError, UnhandledCaseError
from mesh_model_generator.parser.base import (
    ArrayProperty,
    Endpoint,
    ModelMap,
    ObjectProperty,
    Parameter,
    ParsedRaml,
    PrimitiveProperty,
    PropertyDefinition,
    RequestBody,
    Response,
    to_property_definition,
)
from mesh_model_generator.parser.document import parse_document_to_object

logger = logging.getLogger(__name__)

REQUEST_METHODS = ("delete", "get", "post", "patch", "put")

URL_PARAMETER_RE = re.compile(r"\{([^{}/]+)\}")


class MeshRamlParser:
    """Parses the Gentics Mesh RAML for request and response models."""

    def parse_raml(self, raml: str | Mapping) -> ParsedRaml:
        """Entry point. Parses RAML text or an already decoded RAML document."""
        if isinstance(raml, str):
            document = self.parse_yaml_to_object(raml)
        elif isinstance(raml, Mapping):
            document = raml
        else:
            raise InvalidInputError(f"Invalid input: {type(raml).__name__}")

        if not isinstance(document, Mapping):
            raise InvalidInputError(f"RAML document is not a mapping: {type(document).__name__}")

        endpoints, models = self.find_models_and_endpoints(document)
        return ParsedRaml(
            base_uri=_as_text(document.get("baseUri")),
            version=_as_text(document.get("version")),
            endpoints=endpoints,
            models=models,
        )

    def parse_yaml_to_object(self, text: str) -> Any:
        return parse_document_to_object(text)

    def find_models_and_endpoints(self, document: Mapping) -> tuple[list[Endpoint], ModelMap]:
        """Collect all endpoints of the document and the models they reference."""
        models: ModelMap = {}
        endpoints: list[Endpoint] = []

        for path_name, path in document.items():
            if not _is_path(path_name) or not isinstance(path, Mapping):
                continue
            parent_params = path.get("uriParameters") or {}

            for child_name, child in path.items():
                if not _is_path(child_name) or not isinstance(child, Mapping):
                    continue
                url = re.sub(r"/+", "/", path_name + ("" if child_name == "/" else child_name))
                url_params = {**parent_params, **(child.get("uriParameters") or {})}

                for method_name, request in child.items():
                    if method_name not in REQUEST_METHODS:
                        continue
                    endpoint = self.traverse_request(request or {}, method_name, url, url_params or None, models)
                    logger.debug("Found endpoint %s %s", endpoint.method, endpoint.url)
                    endpoints.append(endpoint)

        self.add_missing_uri_parameters(endpoints)
        return endpoints, models

    def add_missing_uri_parameters(self, endpoints: list[Endpoint]) -> None:
        """Add the URL parameters of parent endpoints, e.g. "/{project}" to "/{project}/nodes"."""
        endpoints_by_url = {
            endpoint.url: endpoint for endpoint in endpoints if URL_PARAMETER_RE.search(endpoint.url)
        }

        for endpoint in sorted(endpoints, key=lambda e: len(e.url)):
            for match in URL_PARAMETER_RE.finditer(endpoint.url):
                param_name = match.group(1)
                if endpoint.url_parameters and param_name in endpoint.url_parameters:
                    continue

                # Part of the url that leads to the parameter, e.g. "/groups/{groupUuid}"
                parent = endpoints_by_url.get(endpoint.url[: match.end()])
                if parent is None or not parent.url_parameters or param_name not in parent.url_parameters:
                    raise MissingUriParameterError(param_name, endpoint.url)
                endpoint.url_parameters = {**parent.url_parameters, **(endpoint.url_parameters or {})}

    def traverse_request(
        self,
        request: Mapping,
        method_name: str,
        url: str,
        url_parameters: Mapping | None,
        models: ModelMap,
    ) -> Endpoint:
        endpoint = Endpoint(
            method=method_name.upper(),
            url=url,
            description=request.get("description") or "",
            url_parameters=_parameter_map(url_parameters),
            query_parameters=_parameter_map(request.get("queryParameters")),
        )

        body = request.get("body") or {}
        json_body = body.get("application/json")
        form_body = (body.get("multipart/form-data") or {}).get("formParameters")

        if json_body:
            request_body = RequestBody(mime_type="application/json")
            if json_body.get("example"):
                request_body.example = _decode_json(json_body["example"])
            if json_body.get("schema"):
                request_body.body_schema = self.normalize_schema(self.parse_schema(json_body["schema"]), models)
            endpoint.request_body = request_body
        elif form_body:
            fields = {name: _form_field(field) for name, field in form_body.items()}
            endpoint.request_body = RequestBody(
                mime_type="multipart/form-data",
                body_schema=ObjectProperty(
                    required=any(bool(field.required) for field in fields.values()),
                    properties=fields,
                ),
            )

        endpoint.responses = self.traverse_response_schemas(request.get("responses"), models)
        return endpoint

    def traverse_response_schemas(self, response_map: Mapping | None, models: ModelMap) -> dict[int, Response]:
        responses: dict[int, Response] = {}

        for status_code, response_raml in (response_map or {}).items():
            response_raml = response_raml or {}
            response = Response(description=response_raml.get("description") or "")

            body = (response_raml.get("body") or {}).get("application/json") or {}
            if body.get("example"):
                response.response_body_example = _decode_json(body["example"])
            if body.get("schema"):
                response.response_body_schema = self.normalize_schema(self.parse_schema(body["schema"]), models)

            responses[int(status_code)] = response
        return responses

    def parse_schema(self, schema: str | Mapping) -> PropertyDefinition:
        """Parse an inline JSON schema into a property definition."""
        return to_property_definition(_decode_json(schema))

    def normalize_schema(self, schema: PropertyDefinition, models: ModelMap) -> PropertyDefinition:
        """Normalize a schema and store all named object schemas in ``models``.

        When a model was already stored, the stored instance is returned
        instead of the passed one. Objects are stored before their properties
        are traversed, so cyclic references terminate.
        """
        match schema:
            case PrimitiveProperty():
                return schema

            case ArrayProperty():
                schema.items = self.normalize_schema(schema.items, models)
                return schema

            case ObjectProperty():
                key = schema.ref or schema.id or ""
                if key in models:
                    return models[key]
                if schema.id:
                    models[schema.id] = schema
                    logger.debug("Registered model %s", schema.id)

                for name in list(schema.properties):
                    schema.properties[name] = self.normalize_schema(schema.properties[name], models)

                if schema.additional_properties is not None:
                    schema.additional_properties = self.normalize_schema(schema.additional_properties, models)
                return schema

            case _:
                raise UnhandledCaseError(schema, "type")


def _is_path(key: Any) -> bool:
    return isinstance(key, str) and key.startswith("/")


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _decode_json(value: Any) -> Any:
    """Inline schemas and examples are JSON text, decoded mappings are passed through."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def _parameter_map(params: Mapping | None) -> dict[str, Parameter] | None:
    if not params:
        return None
    return {name: Parameter.model_validate(param or {}) for name, param in params.items()}


def _form_field(field: Mapping | None) -> PropertyDefinition:
    field = dict(field or {})
    field_type = field.get("type") or "string"
    # A binary part has no JSON shape
    field["type"] = "any" if field_type == "file" else field_type
    return to_property_definition(field)
