"""
Tagged step results.

A multi-step flow (authenticate, then book, then maybe fall back) returns one of
these per step instead of nesting try/except blocks, so the caller composes the
steps explicitly:

    step = await authenticate()
    if isinstance(step, Failed):
        return degrade(step.error)
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Degraded(Generic[T]):
    value: T
    reason: str


@dataclass(frozen=True)
class Failed:
    error: Exception
    step: Optional[str] = None


Result = Union[Success[Any], Degraded[Any], Failed]
