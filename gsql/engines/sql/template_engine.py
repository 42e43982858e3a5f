"""
Placeholder substitution for gsql query templates.

A template holds ``{{name}}`` placeholders. Each supplied value is escaped
through the connection's escape function and spliced in as text. This is
textual substitution, not statement parameterization: injection safety is
exactly as good as the driver's escaping.

Placeholders with no supplied value are left verbatim.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

from jinja2 import Environment, TemplateSyntaxError, meta

from gsql.core.errors import GsqlError

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]*)\}\}")

_ENV: Environment | None = None


def _get_env() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment(autoescape=False)
    return _ENV


def placeholder(name: str) -> str:
    return "{{" + name + "}}"


def substitute(
    template: str,
    parameters: Mapping[str, Any] | None,
    escape_fn: Callable[[Any], str],
) -> str:
    """
    Render *template* with *parameters*.

    Every value is escaped exactly once, including values whose placeholder
    does not occur. Substitution is a single pass, so an escaped value that
    itself looks like a placeholder is never expanded again.
    """
    if template is None:
        raise GsqlError("Argument 'template' is missing!")
    if not isinstance(template, str):
        raise GsqlError(f"Incorrect type of 'template': {type(template).__name__}")
    if parameters is None:
        return template
    if not isinstance(parameters, Mapping):
        raise GsqlError(
            f"Incorrect type of 'parameters': {type(parameters).__name__}. It must be a mapping."
        )
    if not parameters:
        return template

    escaped = {str(name): str(escape_fn(value)) for name, value in parameters.items()}

    def _replace(m: re.Match) -> str:
        return escaped.get(m.group(1), m.group(0))

    return _PLACEHOLDER_RE.sub(_replace, template)


def find_placeholders(template: str) -> list[str]:
    """Names referenced by ``{{ }}`` in *template*, sorted. Raises ValueError if unparsable."""
    try:
        ast = _get_env().parse(template)
    except TemplateSyntaxError as e:
        raise ValueError(f"Template syntax error: {e}") from e
    return sorted(meta.find_undeclared_variables(ast))
