from collections.abc import Callable, Hashable, Iterable
from typing import Optional, TypeVar

T = TypeVar("T")
A = TypeVar("A")
K = TypeVar("K", bound=Hashable)


def rank(
    items: Iterable[A],
    measure: Callable[[A], float],
    limit: Optional[int] = None,
) -> list[A]:
    """Sorts items by a measure, highest first, and optionally truncates.

    The sort is stable: items with the same measure keep their input order.

    Args:
        items (Iterable[A]): The items to order.
        measure (Callable[[A], float]): Numeric value to rank by.
        limit (Optional[int]): Maximum number of items to return.

    Returns:
        list[A]: A new list; the input is left untouched.
    """
    ranked = sorted(items, key=measure, reverse=True)
    return ranked if limit is None else ranked[:limit]


def group_and_rank(
    records: Iterable[T],
    key: Callable[[T], K],
    create: Callable[[T], A],
    accumulate: Callable[[A, T], A],
    measure: Callable[[A], float],
    limit: Optional[int] = None,
) -> list[A]:
    """Groups records into per-key buckets and ranks the buckets.

    A bucket is built by ``create`` from the first record seen for its key,
    so attributes copied at creation (such as a display name) reflect that
    first record only. Every record, the first included, is then folded in
    with ``accumulate``. Buckets with equal measures stay in first-seen order.

    Args:
        records (Iterable[T]): The records to group.
        key (Callable[[T], K]): Selects the grouping key of a record.
        create (Callable[[T], A]): Builds an empty bucket from a record.
        accumulate (Callable[[A, T], A]): Folds a record into its bucket.
        measure (Callable[[A], float]): Ranking value of a bucket.
        limit (Optional[int]): Maximum number of buckets to return.

    Returns:
        list[A]: Buckets sorted by measure, highest first.
    """
    buckets: dict[K, A] = {}
    for record in records:
        record_key = key(record)
        if record_key not in buckets:
            buckets[record_key] = create(record)
        buckets[record_key] = accumulate(buckets[record_key], record)
    return rank(buckets.values(), measure, limit)
