"""Display helpers shared by the CLI and the HTTP API.

Grouping by scenario happens here, on the consumer side; the aggregator
only tags and concatenates.
"""

from collections.abc import Iterable
from typing import Any

from fxsense.sensitivity import SensitivityResult, TaggedStatsPoint

# Chart palette: Down red, Base blue, Up green
SCENARIO_COLORS = {
    "Down": ("red", "#ef4444"),
    "Base": ("blue", "#3b82f6"),
    "Up": ("green", "#10b981"),
}


def scenario_kind(label: str) -> str:
    """'Down -20%' -> 'Down'."""
    return label.split(" ", 1)[0]


def scenario_color(label: str, hex_code: bool = False) -> str | None:
    colors = SCENARIO_COLORS.get(scenario_kind(label))
    if colors is None:
        return None
    return colors[1] if hex_code else colors[0]


def series_for(points: Iterable[TaggedStatsPoint], label: str) -> list[TaggedStatsPoint]:
    """Points of one scenario, in their original order."""
    return [p for p in points if p.scenario == label]


def summarize(result: SensitivityResult) -> list[dict[str, Any]]:
    """Terminal (last time step) stats per scenario for underlying and PV."""
    rows = []
    for label in result.scenarios:
        underlying = series_for(result.underlying, label)
        present_value = series_for(result.present_value, label)
        rows.append({
            "scenario": label,
            "color": scenario_color(label, hex_code=True),
            "points": len(underlying),
            "underlying_terminal": underlying[-1] if underlying else None,
            "pv_terminal": present_value[-1] if present_value else None,
        })
    return rows
