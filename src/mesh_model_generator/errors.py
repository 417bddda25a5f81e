"""Exceptions raised while parsing RAML and rendering models."""

from typing import Any


class MeshModelGeneratorError(Exception):
    """Base class for all errors of the model generator."""


class InvalidInputError(MeshModelGeneratorError, TypeError):
    """The input is neither RAML text nor a decoded RAML document."""


class UnhandledCaseError(MeshModelGeneratorError):
    """A schema construct the generator does not support."""

    def __init__(self, value: Any, property_name: str | None = None):
        self.value = value
        self.property_name = property_name
        if property_name and isinstance(value, dict):
            context = f"{property_name} = {value.get(property_name)}"
        elif property_name and value is not None:
            context = f"{property_name} = {getattr(value, property_name, None)}"
        else:
            context = repr(value)
        super().__init__(
            f"unhandled case ({context}).\n"
            f"  type of input: {type(value).__name__}\n"
            f"  input: {value!r}"
        )


class MissingUriParameterError(MeshModelGeneratorError):
    """A URL placeholder has no definition in the endpoint or its ancestors."""

    def __init__(self, parameter: str, url: str):
        self.parameter = parameter
        self.url = url
        super().__init__(f'No definition of URL parameter "{parameter}" can be found for url "{url}"')
