"""Single-assignment result shared between the HTTP callback and the caller."""

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")


class SettlableResult(Generic[T]):
    """A value or error that is set at most once and observed by any number of waiters.

    The first ``resolve``/``reject`` wins; later calls are ignored.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._value: T | None = None
        self._error: BaseException | None = None

    @property
    def done(self) -> bool:
        return self._event.is_set()

    def resolve(self, value: T) -> None:
        if self._event.is_set():
            return
        self._value = value
        self._event.set()

    def reject(self, error: BaseException) -> None:
        if self._event.is_set():
            return
        self._error = error
        self._event.set()

    async def wait(self) -> T:
        """Suspend until settled, then return the value or raise the error."""
        await self._event.wait()
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]
