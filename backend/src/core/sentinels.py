from typing import Any


class MissingType:
    """
    Sentinel type for an omitted keyword argument.

    Update operations use it to tell "leave unchanged" (MISSING) apart
    from "set to null" (None).
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(MissingType, cls).__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo: Any):
        return self


MISSING: Any = MissingType()


def is_provided(value: Any) -> bool:
    """True unless the value is the MISSING sentinel."""
    return value is not MISSING
