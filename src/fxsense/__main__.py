import asyncio
import logging
import sys

import click

from fxsense.config import Settings
from fxsense.logging_config import setup_logging

logger = logging.getLogger(__name__)

MODEL_CHOICES = click.Choice(["gbm", "ou"])
SHOCK_CHOICES = click.Choice(["spot", "vol"])
MAGNITUDE_CHOICES = click.Choice(["10", "20", "50"])


def model_options(func):
    """Shared model / run / shock options; unset values fall back to Settings."""
    options = [
        click.option("--model", "-m", type=MODEL_CHOICES, default="gbm", show_default=True,
                     help="Simulation model"),
        click.option("--shock", "-s", "shock_target", type=SHOCK_CHOICES, default=None,
                     help="Parameter to shock (default: settings)"),
        click.option("--magnitude", "-p", "magnitude_pct", type=MAGNITUDE_CHOICES, default=None,
                     help="Symmetric percentage shift (default: settings)"),
        click.option("--spot", type=float, default=None, help="Initial spot"),
        click.option("--sigma", type=float, default=None, help="Volatility"),
        click.option("--mu", type=float, default=None, help="GBM drift"),
        click.option("--kappa", type=float, default=None, help="OU reversion speed"),
        click.option("--theta", type=float, default=None, help="OU long-term mean"),
        click.option("--maturity", type=float, default=None, help="Maturity in years"),
        click.option("--r-dom", type=float, default=None, help="Domestic rate"),
        click.option("--r-for", type=float, default=None, help="Foreign rate"),
        click.option("--paths", type=int, default=None, help="Simulated paths"),
        click.option("--steps", type=int, default=None, help="Time steps"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_inputs(settings: Settings, model: str, shock_target: str | None,
                    magnitude_pct: str | None, overrides: dict):
    """Merge CLI overrides onto Settings defaults and build domain inputs."""
    import dataclasses

    from fxsense.sensitivity import ShockSpec

    params = settings.default_params(model)
    param_overrides = {
        k: v for k, v in overrides.items()
        if v is not None and k in {f.name for f in dataclasses.fields(params)}
    }
    ignored = [
        k for k in ("mu", "kappa", "theta")
        if overrides.get(k) is not None and k not in param_overrides
    ]
    if ignored:
        click.echo(f"Ignoring {', '.join(ignored)} for model {model}", err=True)
    params = dataclasses.replace(params, **param_overrides)

    config = settings.default_run_config()
    config_overrides = {
        k: v for k, v in overrides.items()
        if v is not None and k in {"maturity", "r_dom", "r_for", "paths", "steps"}
    }
    config = dataclasses.replace(config, **config_overrides)

    shock = ShockSpec(
        target=shock_target or settings.shock_target,
        magnitude_pct=int(magnitude_pct) if magnitude_pct else settings.shock_magnitude_pct,
    )
    return params, shock, config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """fxsense - FX forward spot/volatility sensitivity runner"""
    settings = Settings()
    setup_logging(settings.log_dir, verbose=verbose)
    ctx.obj = settings


@cli.command()
@click.option("--magnitude", "-p", "magnitude_pct", type=MAGNITUDE_CHOICES, default="20",
              show_default=True, help="Symmetric percentage shift")
def plan(magnitude_pct: str):
    """Show the Down / Base / Up scenarios for a shift."""
    from fxsense.display import scenario_color
    from fxsense.sensitivity.planner import plan as plan_scenarios

    for scenario in plan_scenarios(int(magnitude_pct)):
        label = click.style(f"{scenario.label:<12}", fg=scenario_color(scenario.label))
        click.echo(f"  {label} factor={scenario.shift_factor:.4f}")


@cli.command()
@model_options
@click.pass_obj
def requests(settings: Settings, model: str, shock_target: str | None,
             magnitude_pct: str | None, **overrides):
    """Print the three simulation request URLs without calling the service."""
    from fxsense.sensitivity.client import SimulationClient
    from fxsense.sensitivity.planner import plan as plan_scenarios
    from fxsense.sensitivity.request_builder import build_request

    try:
        params, shock, config = _resolve_inputs(
            settings, model, shock_target, magnitude_pct, overrides
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    client = SimulationClient(base_url=settings.simulation_base_url)
    for scenario in plan_scenarios(shock.magnitude_pct):
        request = build_request(scenario, params, shock, config)
        click.echo(f"[{scenario.label}] {client.url_for(request)}")


@cli.command()
@model_options
@click.option("--parallel/--sequential", default=None,
              help="Issue the three scenario calls concurrently (default: settings)")
@click.pass_obj
def run(settings: Settings, model: str, shock_target: str | None,
        magnitude_pct: str | None, parallel: bool | None, **overrides):
    """Run a sensitivity analysis against the simulation service."""
    from fxsense.display import scenario_color, summarize
    from fxsense.sensitivity.controller import create_controller
    from fxsense.sensitivity.errors import SensitivityError

    try:
        params, shock, config = _resolve_inputs(
            settings, model, shock_target, magnitude_pct, overrides
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    controller = create_controller(settings)
    if parallel is not None:
        controller.parallel = parallel

    click.echo(
        f"Running {model.upper()} sensitivity: {shock.target.value} ±{shock.magnitude_pct}% "
        f"against {settings.simulation_base_url}"
    )
    try:
        result = asyncio.run(controller.start(params, shock, config))
    except SensitivityError as e:
        click.echo(f"FAILED - {e}", err=True)
        sys.exit(1)

    click.echo(f"\n  {'Scenario':<12} {'Underlying mean [p5, p95]':<34} PV mean [p5, p95]")
    for row in summarize(result):
        label = click.style(f"{row['scenario']:<12}", fg=scenario_color(row["scenario"]))
        click.echo(
            f"  {label} {_fmt_point(row['underlying_terminal']):<34} "
            f"{_fmt_point(row['pv_terminal'])}"
        )
    click.echo(f"\nRun complete. {len(result.underlying)} underlying points, "
               f"{len(result.present_value)} PV points.")


def _fmt_point(point) -> str:
    if point is None:
        return "-"
    return f"{point.mean:.4f} [{point.p5:.4f}, {point.p95:.4f}]"


if __name__ == "__main__":
    cli()
