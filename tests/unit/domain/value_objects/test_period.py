from __future__ import annotations

from datetime import datetime

import pytest

from bistfin.domain.value_objects.period import (
    Period,
    chunk,
    current_period,
    periods_between_inclusive,
    previous_n_periods,
    sort_period_keys,
)


@pytest.mark.parametrize(
    ("month", "label"),
    [(1, 3), (3, 3), (4, 6), (6, 6), (7, 9), (9, 9), (10, 12), (12, 12)],
)
def test_current_period_uses_in_progress_quarter_label(month: int, label: int) -> None:
    assert current_period(datetime(2024, month, 15)) == Period(2024, label)


def test_period_key_round_trips_and_rejects_bad_labels() -> None:
    assert Period(2024, 6).key == "2024/6"
    assert Period.parse(" 2023/12 ") == Period(2023, 12)
    with pytest.raises(ValueError):
        Period(2024, 5)
    with pytest.raises(ValueError):
        Period.parse("2024-6")
    with pytest.raises(ValueError):
        Period.parse("abcd/3")


def test_periods_between_inclusive_spans_years_in_canonical_order() -> None:
    seq = periods_between_inclusive(Period(2022, 9), Period(2023, 6))
    assert [p.key for p in seq] == ["2022/9", "2022/12", "2023/3", "2023/6"]


def test_periods_between_inclusive_empty_when_start_after_end() -> None:
    assert periods_between_inclusive(Period(2024, 6), Period(2024, 3)) == []
    assert periods_between_inclusive(Period(2024, 6), Period(2024, 6)) == [Period(2024, 6)]


def test_bootstrap_range_from_2008_3_to_2024_6() -> None:
    seq = periods_between_inclusive(Period(2008, 3), Period(2024, 6))
    assert len(seq) == 66
    assert seq[0].key == "2008/3"
    assert seq[-1].key == "2024/6"
    assert len(chunk(seq, 4)) == 17
    assert seq == sorted(seq)


def test_previous_n_periods_crosses_year_boundary() -> None:
    assert [p.key for p in previous_n_periods(Period(2023, 12), 3)] == ["2023/3", "2023/6", "2023/9"]
    assert [p.key for p in previous_n_periods(Period(2024, 3), 2)] == ["2023/9", "2023/12"]
    assert previous_n_periods(Period(2024, 3), 0) == []
    with pytest.raises(ValueError):
        previous_n_periods(Period(2024, 3), -1)


@pytest.mark.parametrize("n", [1, 4, 5, 9])
def test_previous_n_periods_length_and_adjacency(n: int) -> None:
    origin = Period(2020, 6)
    seq = previous_n_periods(origin, n)
    assert len(seq) == n
    # The sequence ends right before origin with no holes.
    assert periods_between_inclusive(seq[0], origin)[:-1] == seq


def test_chunk_preserves_order_and_last_group_may_be_short() -> None:
    assert chunk([1, 2, 3, 4, 5, 6], 4) == [[1, 2, 3, 4], [5, 6]]
    assert chunk([], 4) == []
    with pytest.raises(ValueError):
        chunk([1], 0)


def test_sort_period_keys_orders_numerically_and_dedupes() -> None:
    keys = ["2024/3", "2023/12", "2023/9", "2024/3", "2023/3"]
    assert sort_period_keys(keys) == ["2023/3", "2023/9", "2023/12", "2024/3"]
