"""
Attribute value states shared by plans and state records.

A planned attribute is either a concrete value, null (``None``) or
unknown (not yet known at plan time, e.g. a computed attribute).
"""
from typing import Any


class Unknown:
    """
    Marker for a value that will only be known after apply.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNKNOWN = Unknown()


def is_unknown(value: Any) -> bool:
    return value is UNKNOWN


def is_null(value: Any) -> bool:
    return value is None
