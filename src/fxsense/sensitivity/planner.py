"""Scenario planning: symmetric Down / Base / Up shift factors."""

from fxsense.sensitivity import Scenario


def plan(magnitude_pct: int) -> list[Scenario]:
    """Return the three scenarios for a symmetric shift of ``magnitude_pct``.

    Order is always Down, Base, Up. The result does not depend on which
    parameter is shocked; the shift is applied when requests are built.

    Raises:
        ValueError: if ``magnitude_pct`` is outside [0, 100).
    """
    if isinstance(magnitude_pct, bool) or not 0 <= magnitude_pct < 100:
        raise ValueError(f"magnitude_pct must be in [0, 100), got {magnitude_pct!r}")

    shift = magnitude_pct / 100
    return [
        Scenario(label=f"Down -{magnitude_pct}%", shift_factor=1 - shift, is_base=False),
        Scenario(label="Base 0%", shift_factor=1.0, is_base=True),
        Scenario(label=f"Up +{magnitude_pct}%", shift_factor=1 + shift, is_base=False),
    ]
