"""CLI entry point for mesh-model-generator."""

import logging
from pathlib import Path

import click
import yaml

from mesh_model_generator.errors import MeshModelGeneratorError
from mesh_model_generator.generator.options import RendererOptions, load_options
from mesh_model_generator.generator.typescript import TypescriptModelRenderer
from mesh_model_generator.parser.base import ParsedRaml
from mesh_model_generator.parser.raml import MeshRamlParser


def _parse_raml(infile) -> ParsedRaml:
    """Read and parse the RAML input, reporting failures as click errors."""
    try:
        return MeshRamlParser().parse_raml(infile.read())
    except (MeshModelGeneratorError, yaml.YAMLError, ValueError, OSError) as e:
        raise click.ClickException(f"Could not parse {infile.name}: {e}") from e


def _build_options(config: Path | None, **flags) -> RendererOptions:
    """Defaults, overridden by the config file, overridden by explicit flags."""
    try:
        options = load_options(config) if config else RendererOptions()
    except (MeshModelGeneratorError, yaml.YAMLError, ValueError, OSError) as e:
        raise click.ClickException(f"Invalid options file {config}: {e}") from e
    return options.merged(**flags)


@click.group()
@click.version_option(package_name="mesh-model-generator")
@click.option("--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """Mesh Model Generator: generate TypeScript interfaces from Gentics Mesh RAML."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("infile", default="-", type=click.File("r", encoding="utf-8"))
@click.option("-o", "--output", default="-", type=click.File("w", encoding="utf-8"), help="Output file for the TypeScript declarations.")
@click.option("-c", "--config", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML file with renderer options.")
@click.option("--endpoint-list/--no-endpoint-list", "add_endpoint_list", default=None, help="Emit an interface listing all endpoints.")
@click.option("--readonly/--no-readonly", "emit_interfaces_as_readonly", default=None, help="Mark all interface fields as readonly.")
@click.option("--request-examples/--no-request-examples", "emit_request_examples", default=None, help="Include request examples in doc comments.")
@click.option("--response-examples/--no-response-examples", "emit_response_examples", default=None, help="Include response examples in doc comments.")
@click.option("--request-urls/--no-request-urls", "emit_request_urls", default=None, help="List the endpoints returning a model in its doc comment.")
@click.option("--integer-as", "emit_integer_as", default=None, help="Type emitted for integer properties.")
@click.option("--prefix", "interface_prefix", default=None, help="Prefix for all interface names.")
@click.option("--suffix", "interface_suffix", default=None, help="Suffix for all interface names.")
@click.option("--endpoint-interface", default=None, help="Name of the endpoint list interface.")
@click.option("--max-line-length", type=int, default=None, help="Wrap width of doc comments.")
def generate(infile, output, config: Path | None, **flags):
    """Generate TypeScript interfaces from a RAML file (or stdin)."""
    options = _build_options(config, **flags)
    raml = _parse_raml(infile)
    click.echo(f"Found {len(raml.endpoints)} endpoints and {len(raml.models)} models.", err=True)

    try:
        rendered = TypescriptModelRenderer(options).render_all(raml)
    except MeshModelGeneratorError as e:
        raise click.ClickException(str(e)) from e

    output.write(rendered)
    if output.name != "<stdout>":
        click.echo(f"Interfaces saved to {output.name}", err=True)


@main.command("list")
@click.argument("infile", default="-", type=click.File("r", encoding="utf-8"))
def list_models(infile):
    """List the endpoints and models found in a RAML file."""
    raml = _parse_raml(infile)
    renderer = TypescriptModelRenderer()

    click.echo(f"RAML version {raml.version or '?'}, base URI {raml.base_uri or '?'}")
    click.echo(f"Endpoints ({len(raml.endpoints)}):")
    for method, endpoints in renderer.group_endpoints_by_method(raml.endpoints).items():
        for endpoint in endpoints:
            click.echo(f"  {method} {endpoint.url}")

    click.echo(f"Models ({len(raml.models)}):")
    for model_ref in sorted(raml.models, key=renderer.generate_model_name):
        click.echo(f"  {renderer.generate_model_name(model_ref)}  ({model_ref})")
