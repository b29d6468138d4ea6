from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Callable, Iterable, TypeVar


T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def decode_in_order(
        items: Iterable[T],
        decode: Callable[[T], R],
        max_workers: int | None = None
) -> list[R]:
    """Decode items concurrently and return the results in input order.

    One task is submitted per item. Results are collected from the
    futures in the order the tasks were submitted, so the output order
    never depends on which task finishes first. If any task raises,
    tasks that have not started yet are cancelled and the first error in
    submission order is raised once the running tasks have finished.

    Args:
        items: Work items, e.g. per-scan records parsed from a document.
        decode: Function turning one item into a result. It must not
            depend on the state of other items.
        max_workers: Maximum number of threads. `None` lets the
            executor choose.

    Returns:
        A list with one result per item, in the order of `items`.
    """
    items = list(items)
    if not items:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(decode, item) for item in items]
        results = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            cancelled = sum(future.cancel() for future in futures)
            if cancelled:
                logger.debug(f"Cancelled {cancelled} pending decode tasks")
            raise

    return results
