"""
Validator restricting a string attribute to a closed set of values.
"""
from typing import Tuple

from ..FRAMEWORK.schema import StringRequest, StringResponse, StringValidator
from ..FRAMEWORK.values import is_unknown


class StringOneOfValidator(StringValidator):
    """
    Passes null and unknown values; rejects anything outside ``values``.
    """

    def __init__(self, values: Tuple[str, ...]):
        self.values = tuple(values)

    def description(self) -> str:
        return "value must be one of: " + ", ".join(self.values)

    def validate_string(self, request: StringRequest, response: StringResponse) -> None:
        value = request.config_value
        if value is None or is_unknown(value):
            return

        if value in self.values:
            return

        response.diagnostics.add_attribute_error(
            request.path,
            "Invalid value",
            f"Expected one of: {', '.join(self.values)}, got: {value}",
        )


def string_one_of(*values: str) -> StringValidator:
    return StringOneOfValidator(values)
