"""Persisted per-address snapshot models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from injpoints._constants import MAX_EVENTS, MAX_POINTS, SCHEMA_VERSION
from injpoints.models._base import InjBaseModel, Number


class _Series(InjBaseModel):
    """Parallel arrays that must stay aligned point-for-point."""

    @model_validator(mode="after")
    def _check_aligned(self) -> _Series:
        lengths = {name: len(getattr(self, name)) for name in type(self).model_fields}
        if len(set(lengths.values())) > 1:
            raise ValueError(f"series arrays differ in length: {lengths}")
        if any(n > MAX_POINTS for n in lengths.values()):
            raise ValueError(f"series longer than {MAX_POINTS} points")
        return self

    def __len__(self) -> int:
        first = next(iter(type(self).model_fields))
        return len(getattr(self, first))


class StakeSeries(_Series):
    labels: tuple[str, ...] = ()
    data: tuple[Number, ...] = ()
    moves: tuple[Number, ...] = ()
    types: tuple[str, ...] = ()


class WithdrawalSeries(_Series):
    labels: tuple[str, ...] = ()
    values: tuple[Number, ...] = ()
    times: tuple[Number, ...] = ()


class NetWorthSeries(_Series):
    times: tuple[Number, ...] = ()
    usd: tuple[Number, ...] = ()
    inj: tuple[Number, ...] = ()


class SnapshotEvent(InjBaseModel):
    """A discrete dashboard event (withdraw, reward, price move, tx, ...)."""

    id: str
    ts: Number
    kind: str = "event"
    title: str = ""
    detail: str = ""
    # INJ, USD or percent depending on kind; the client decides.
    value: Number = 0
    # "up" | "down" | "" for price events
    dir: str = ""
    status: str = "done"


class PersistedSnapshot(InjBaseModel):
    """Full replacement document owned by one address."""

    version: Literal[2] = SCHEMA_VERSION
    written_at: int
    stake: StakeSeries = Field(default_factory=StakeSeries)
    withdrawals: WithdrawalSeries = Field(default_factory=WithdrawalSeries)
    networth: NetWorthSeries = Field(default_factory=NetWorthSeries)
    events: tuple[SnapshotEvent, ...] = Field(default=(), max_length=MAX_EVENTS)
