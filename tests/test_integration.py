"""End-to-end tests from RAML text to TypeScript declarations."""

from pathlib import Path

import pytest

from mesh_model_generator.errors import MissingUriParameterError
from mesh_model_generator.generator.options import RendererOptions
from mesh_model_generator.parser.document import load_document
from mesh_model_generator.pipeline import generate_declarations, parse_and_generate

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def raml_text():
    return (FIXTURES / "mesh.raml").read_text(encoding="utf-8")


class TestGenerateDeclarations:
    def test_file_head(self, raml_text):
        result = generate_declarations(raml_text)
        assert result.startswith(
            "// Auto-generated from the RAML for Version 1.0.2 of the Gentics Mesh REST API.\n"
            "\n"
            "export type Integer = number;\n"
        )

    def test_interfaces_are_sorted_by_name(self, raml_text):
        result = generate_declarations(raml_text)
        names = [line.split()[2] for line in result.split("\n") if line.startswith("export interface")]
        assert names == [
            "GroupReference",
            "NodeResponse",
            "ProjectResponse",
            "UserCreateRequest",
            "UserListResponse",
            "UserResponse",
        ]

    def test_each_model_is_declared_once(self, raml_text):
        result = generate_declarations(raml_text)
        assert result.count("export interface UserResponse {") == 1
        assert result.count("export interface NodeResponse {") == 1

    def test_self_referencing_model(self, raml_text):
        result = generate_declarations(raml_text)
        assert (
            "/** A node of the project. */\n"
            "export interface NodeResponse {\n"
            "    children?: NodeResponse[];\n"
            "    fields: { [key: string]: string };\n"
            "    version: Integer;\n"
            "}\n"
        ) in result

    def test_nested_models(self, raml_text):
        result = generate_declarations(raml_text)
        assert (
            "export interface UserListResponse {\n"
            "    /** Array which contains the found elements. */\n"
            "    data: UserResponse[];\n"
            "}\n"
        ) in result
        assert (
            "export interface UserResponse {\n"
            "    groups: GroupReference[];\n"
            "    /** Username of the user. */\n"
            "    username: string;\n"
            "    /** Uuid of the element */\n"
            "    uuid: string;\n"
            "}\n"
        ) in result

    def test_options_as_mapping(self, raml_text):
        result = generate_declarations(raml_text, {"emitIntegerAs": "number", "interfacePrefix": "Mesh"})
        assert "export interface MeshNodeResponse {" in result
        assert "    version: number;" in result
        assert "    children?: MeshNodeResponse[];" in result

    def test_endpoint_list_and_request_urls(self, raml_text):
        options = RendererOptions(add_endpoint_list=True, emit_request_urls=True)
        result = generate_declarations(raml_text, options)

        assert result.index("export interface ApiEndpoints {") < result.index("export interface GroupReference {")
        assert "        '/{project}/nodes/{nodeUuid}/binary/{fieldName}': {" in result
        assert "                body: { binary: any; language?: string; };" in result
        assert (
            "/**\n"
            " * Returned for:\n"
            " *   - `GET /users/{userUuid}`\n"
            " *   - `POST /users`\n"
            " */\n"
            "export interface UserResponse {\n"
        ) in result

    def test_inherited_url_parameters_in_endpoint_list(self, raml_text):
        result = generate_declarations(raml_text, {"add_endpoint_list": True})
        nodes = result[result.index("'/{project}/nodes': {"):]
        assert nodes.split("\n")[1:5] == [
            "            request: {",
            "                urlParams: {",
            "                    /**",
            "                     * Name of the project.",
        ]

    def test_decoded_document(self):
        result = generate_declarations(load_document(FIXTURES / "mesh.raml"))
        assert "export interface ProjectResponse {" in result

    def test_parse_and_generate_alias(self, raml_text):
        assert parse_and_generate(raml_text) == generate_declarations(raml_text)

    def test_document_without_endpoints_or_models(self):
        assert generate_declarations("title: Empty API\nversion: 1\n") == ""

    def test_undefined_url_parameter(self):
        raml = "/{project}:\n  /nodes:\n    get:\n      description: Load nodes.\n"
        with pytest.raises(MissingUriParameterError):
            generate_declarations(raml)
