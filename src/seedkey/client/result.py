from __future__ import annotations
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

from ..errors import SeedKeyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: SeedKeyError

    @property
    def code(self):
        return self.error.code


Result = Union[Ok[T], Err]


async def attempt(flow: Callable[[], Awaitable[T]]) -> "Result[T]":
    """Run a flow and capture a structured failure as ``Err``; anything else propagates."""
    try:
        return Ok(await flow())
    except SeedKeyError as e:
        return Err(e)


def unwrap(result: "Result[T]") -> T:
    if isinstance(result, Err):
        raise result.error
    return result.value
