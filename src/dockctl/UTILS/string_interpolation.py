"""
Variable substitution for configuration text.

Supports ``${VAR}``, ``${VAR:-default}``, ``${VAR:+alternate}`` and ``$$`` for a
literal dollar sign.
"""
import os
import re
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

_PATTERN = re.compile(r'\$(?:(?P<escaped>\$)|\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<op>[-+])(?P<arg>[^}]*))?\})')


class UnsetVariable(KeyError):
    """A ``${VAR}`` reference without a modifier named an unset variable."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Variable {self.name} is not set"


def interpolate(template: str, context: Mapping[str, str]) -> str:
    """
    Substitutes variables in ``template`` from ``context``.

    :param template: Text containing ``${VAR}`` references.
    :param context: Variable values.
    :return: The substituted text.
    :raises UnsetVariable: If a bare ``${VAR}`` is not in the context.
    """
    def replace(match):
        if match.group('escaped'):
            return '$'
        name = match.group('name')
        op = match.group('op')
        value = context.get(name)
        if op == '-':
            return value if value else match.group('arg')
        if op == '+':
            return match.group('arg') if value else ''
        if value is None:
            raise UnsetVariable(name)
        return value

    return _PATTERN.sub(replace, template)


def load_context(env_file: Optional[str] = None) -> Dict[str, str]:
    """
    Builds the interpolation context: the process environment, overlaid by
    the values from ``env_file`` when it exists.
    """
    context = dict(os.environ)
    if env_file and os.path.isfile(env_file):
        for key, value in dotenv_values(env_file).items():
            if value is not None:
                context[key] = value
    return context
