"""
${VAR} interpolation for resource configuration files.
"""
import re
from typing import Mapping

# $${...} is a literal, ${VAR}, ${VAR:-default}, ${VAR:+value}
_PATTERN = re.compile(r'\$(\$)?\{([A-Za-z_][A-Za-z0-9_]*)(?::(-|\+)([^}]*))?\}')


def interpolate(template: str, context: Mapping[str, str]) -> str:
    """
    Substitutes variables from ``context`` into ``template``.

    ``${VAR:-default}`` uses the default when VAR is unset or empty,
    ``${VAR:+value}`` yields value only when VAR is set and non-empty and
    ``$${VAR}`` is emitted as the literal ``${VAR}``.

    :raises KeyError: If a bare ``${VAR}`` names an unset variable.
    """
    def replace(match):
        escaped, name, modifier, alt = match.groups()
        if escaped:
            return match.group(0)[1:]

        value = context.get(name)
        if modifier == '-':
            return value if value else alt
        if modifier == '+':
            return alt if value else ''
        if value is None:
            raise KeyError(f"Variable {name} not found in context")
        return value

    return _PATTERN.sub(replace, template)
