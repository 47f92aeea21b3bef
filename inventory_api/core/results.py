"""
Explicit outcomes for core operations.

Components return `Ok(value)` or `Failure(kind, reason)` instead of raising or
returning None, so callers can tell a conflict from an internal error without
inspecting exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    reason: str = ""


Result = Union[Ok[T], Failure]