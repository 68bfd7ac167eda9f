from app.analytics.ranking import group_and_rank, rank


def test_rank_is_descending_and_stable() -> None:
    items = [("a", 1), ("b", 3), ("c", 1), ("d", 3)]
    assert rank(items, measure=lambda i: i[1]) == [("b", 3), ("d", 3), ("a", 1), ("c", 1)]


def test_rank_limit_and_input_untouched() -> None:
    items = [5, 1, 4, 2, 3]
    assert rank(items, measure=lambda i: i, limit=2) == [5, 4]
    assert items == [5, 1, 4, 2, 3]


def test_rank_limit_larger_than_input() -> None:
    assert rank([1, 2], measure=lambda i: i, limit=10) == [2, 1]


def test_group_and_rank_sums_per_key() -> None:
    records = [("apple", 2), ("pear", 5), ("apple", 4), ("plum", 1)]
    buckets = group_and_rank(
        records,
        key=lambda r: r[0],
        create=lambda r: {"name": r[0], "total": 0},
        accumulate=lambda bucket, r: {**bucket, "total": bucket["total"] + r[1]},
        measure=lambda bucket: bucket["total"],
    )
    assert buckets == [
        {"name": "apple", "total": 6},
        {"name": "pear", "total": 5},
        {"name": "plum", "total": 1},
    ]


def test_group_and_rank_bucket_built_from_first_record() -> None:
    records = [(1, "first label"), (1, "second label")]
    buckets = group_and_rank(
        records,
        key=lambda r: r[0],
        create=lambda r: {"label": r[1], "count": 0},
        accumulate=lambda bucket, r: {**bucket, "count": bucket["count"] + 1},
        measure=lambda bucket: bucket["count"],
    )
    assert buckets == [{"label": "first label", "count": 2}]


def test_group_and_rank_empty() -> None:
    assert group_and_rank([], key=id, create=list, accumulate=lambda b, r: b, measure=len, limit=3) == []
