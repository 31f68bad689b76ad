"""
Utilities for string interpolation using environment variables.
"""
import re
from typing import Dict


class EnvironmentInterpolator:
    """
    Utility for interpolating environment variables in strings.
    Supports ${VAR}, ${VAR:-default}, and ${VAR:+value}.
    """
    PATTERN = re.compile(r'\$\{([^}:]+)(?::(-|\+)([^}]*))?\}')

    @staticmethod
    def interpolate(template: str, context: Dict[str, str]) -> str:
        """
        Interpolates environment variables in the template string using the provided context.

        :param template: The string containing ${VAR} placeholders.
        :param context: The environment variables context.
        :return: The interpolated string.
        """
        def replace(match):
            var_name = match.group(1)
            modifier = match.group(2)  # None, '-', or '+'
            alt_value = match.group(3)

            value = context.get(var_name)

            if modifier == '-':
                return value if value else alt_value
            if modifier == '+':
                return alt_value if value else ''
            # compose resolves an unset ${VAR} to an empty string
            return value if value is not None else ''

        return EnvironmentInterpolator.PATTERN.sub(replace, template)
