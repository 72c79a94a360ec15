"""Journey persistence.

``JourneyStore`` answers synchronously and ``PostgresJourneyRepository``
answers with coroutines. The engine wraps every repository call in
:func:`resolve` so it never needs to know which one it holds.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def resolve(result: T | Awaitable[T]) -> T:
    """Return a repository result, awaiting it first when the store is async."""
    return await result if inspect.isawaitable(result) else result  # type: ignore[return-value]
