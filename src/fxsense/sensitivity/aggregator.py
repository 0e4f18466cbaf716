"""Combine per-scenario stats into scenario-tagged series."""

from collections.abc import Iterable, Sequence

from fxsense.sensitivity import (
    RawScenarioResult,
    SensitivityResult,
    StatsPoint,
    TaggedStatsPoint,
)


def aggregate(pairs: Sequence[tuple[str, RawScenarioResult]]) -> SensitivityResult:
    """Tag every point with its scenario label and concatenate in input order.

    Points are never reordered, interleaved or deduplicated by time, and
    band ordering is not checked here.
    """
    underlying: list[TaggedStatsPoint] = []
    present_value: list[TaggedStatsPoint] = []

    for label, raw in pairs:
        underlying.extend(_tag(raw.underlying_stats, label))
        present_value.extend(_tag(raw.pv_stats, label))

    return SensitivityResult(underlying=tuple(underlying), present_value=tuple(present_value))


def _tag(points: Iterable[StatsPoint], label: str) -> list[TaggedStatsPoint]:
    return [
        TaggedStatsPoint(time=p.time, mean=p.mean, p5=p.p5, p95=p.p95, scenario=label)
        for p in points
    ]
