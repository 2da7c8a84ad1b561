"""Rendering of object templates.

Templates are Jinja2 documents rendered with the input variables of an object. Whether a variable which is referenced
by a template but missing from the input variables renders as an empty value or raises an error is selected by
:class:`MissingKeyPolicy`.
"""
import enum
import os
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import jinja2

from kubepreload.utils import random_string


class MissingKeyPolicy(enum.Enum):
    # Missing keys render as empty values
    ZERO = 'zero'
    # Missing keys raise jinja2.UndefinedError
    ERROR = 'error'


_UNDEFINED_BY_POLICY = {
    MissingKeyPolicy.ZERO: jinja2.ChainableUndefined,
    MissingKeyPolicy.ERROR: jinja2.StrictUndefined,
}


def _env(name: str, default: str = '') -> str:
    return os.getenv(name, default)


def _rand(length: int) -> str:
    return random_string(int(length))


def _add(*values: Any) -> int:
    return sum(int(value) for value in values)


def _multiply(*values: Any) -> int:
    result = 1
    for value in values:
        result *= int(value)
    return result


DEFAULT_FUNCTIONS: Dict[str, Callable] = {
    'env': _env,
    'rand': _rand,
    'add': _add,
    'multiply': _multiply,
}


def render_template(template: str,
                    input_vars: Optional[Mapping[str, Any]],
                    missing_key_policy: MissingKeyPolicy = MissingKeyPolicy.ZERO,
                    functions: Optional[Sequence[str]] = None) -> str:
    """Render a template with the given input variables.

    ``functions`` is a list of template bodies (usually Jinja2 macro definitions) which are made available to the
    rendered template by prepending them to it. All exceptions raised by Jinja2 are passed through unchanged.
    """
    environment = jinja2.Environment(undefined=_UNDEFINED_BY_POLICY[missing_key_policy],
                                     keep_trailing_newline=True,
                                     autoescape=False)
    environment.globals.update(DEFAULT_FUNCTIONS)

    source = ''.join(function + '\n' for function in functions or []) + template
    return environment.from_string(source).render(dict(input_vars or {}))
