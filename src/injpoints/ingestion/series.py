"""Series normalization.

Clients send each series as parallel arrays that can drift out of sync
(a label pushed without its data point, a truncated upload, ...). The
normalizer clamps every array to the retained window and aligns them on
the series' primary array:

- arrays longer than the primary keep their newest entries
- arrays shorter than the primary are left-padded with a default, so
  history gets backfilled but the most recent points are never invented
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Sequence
from typing import Any

from injpoints._constants import MAX_POINTS
from injpoints.ingestion.normalize import coerce_number, coerce_string
from injpoints.models.snapshot import NetWorthSeries, StakeSeries, WithdrawalSeries, _Series

STAKE_PLACEHOLDER = "Stake update"
WITHDRAWAL_PLACEHOLDER = "Withdrawal"


@dataclasses.dataclass(frozen=True)
class SeriesField:
    """How one array of a series is coerced and padded."""

    name: str
    coerce: Callable[[Any], Any]
    default: Any


def _numeric(name: str) -> SeriesField:
    return SeriesField(name, coerce_number, 0)


def _text(name: str, max_len: int, default: str) -> SeriesField:
    return SeriesField(name, lambda value: coerce_string(value, max_len), default)


@dataclasses.dataclass(frozen=True)
class SeriesLayout:
    model: type[_Series]
    primary: str
    fields: tuple[SeriesField, ...]


STAKE_LAYOUT = SeriesLayout(
    model=StakeSeries,
    primary="data",
    fields=(
        _text("labels", 48, STAKE_PLACEHOLDER),
        _numeric("data"),
        _numeric("moves"),
        _text("types", 40, STAKE_PLACEHOLDER),
    ),
)

WITHDRAWAL_LAYOUT = SeriesLayout(
    model=WithdrawalSeries,
    primary="values",
    fields=(
        _text("labels", 48, WITHDRAWAL_PLACEHOLDER),
        _numeric("values"),
        _numeric("times"),
    ),
)

NETWORTH_LAYOUT = SeriesLayout(
    model=NetWorthSeries,
    primary="times",
    fields=(
        _numeric("times"),
        _numeric("usd"),
        _numeric("inj"),
    ),
)


def clamp_tail(items: Any, limit: int) -> list[Any]:
    """Keep the newest *limit* items of a list; non-lists become ``[]``."""
    if not isinstance(items, list):
        return []
    if len(items) <= limit:
        return list(items)
    return items[len(items) - limit :]


def align_tail(items: Sequence[Any], length: int, default: Any) -> list[Any]:
    """Return exactly *length* items: newest kept, missing history backfilled."""
    kept = list(items[max(len(items) - length, 0) :])
    if len(kept) < length:
        kept = [default] * (length - len(kept)) + kept
    return kept


def normalize_series(raw: Any, layout: SeriesLayout, *, max_points: int = MAX_POINTS) -> _Series:
    """Normalize one series section into its aligned model."""
    if not isinstance(raw, dict):
        return layout.model()

    arrays: dict[str, list[Any]] = {
        spec.name: [spec.coerce(item) for item in clamp_tail(raw.get(spec.name), max_points)]
        for spec in layout.fields
    }
    length = len(arrays[layout.primary])
    aligned = {spec.name: align_tail(arrays[spec.name], length, spec.default) for spec in layout.fields}
    return layout.model(**aligned)


def normalize_stake(raw: Any) -> StakeSeries:
    return normalize_series(raw, STAKE_LAYOUT)  # type: ignore[return-value]


def normalize_withdrawals(raw: Any) -> WithdrawalSeries:
    return normalize_series(raw, WITHDRAWAL_LAYOUT)  # type: ignore[return-value]


def normalize_networth(raw: Any) -> NetWorthSeries:
    return normalize_series(raw, NETWORTH_LAYOUT)  # type: ignore[return-value]
