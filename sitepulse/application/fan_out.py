"""
Chunked fan-out over identifier lists.

Backends limit how many identifiers one request may carry; callers split
the list into fixed-size batches, issue one request per batch and
concatenate the results.
"""
from typing import Awaitable, Callable, List, Sequence, TypeVar


T = TypeVar('T')
R = TypeVar('R')

DEFAULT_BATCH_SIZE = 50


def chunked(items: Sequence[T], size: int = DEFAULT_BATCH_SIZE) -> List[List[T]]:
    """Split items into consecutive batches of at most size elements."""
    if size < 1:
        raise ValueError("batch size must be positive")
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


async def fan_out(
    items: Sequence[T],
    fetch: Callable[[List[T]], Awaitable[Sequence[R]]],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[R]:
    """
    Call fetch once per batch and concatenate the results in batch order.

    Batches are awaited one after another; the repositories behind fetch
    share a single database session.
    """
    results: List[R] = []
    for batch in chunked(items, batch_size):
        results.extend(await fetch(batch))
    return results
