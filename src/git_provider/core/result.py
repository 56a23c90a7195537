"""
Lookup results for operations where absence is an expected outcome.

The request layer returns ``Found(payload)`` or ``NOT_FOUND`` so adapters can
branch on absence instead of catching exceptions; every other failure is still
raised.
"""
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    """A lookup that produced a value."""
    value: T


class NotFound:
    """A lookup whose target does not exist."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()

Lookup = Union[Found[Any], NotFound]
