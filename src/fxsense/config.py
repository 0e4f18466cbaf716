from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FXS_",
    )

    # Simulation service
    simulation_base_url: str = "http://localhost:5053"
    simulation_timeout: float = 30.0  # seconds, per scenario request
    simulation_max_attempts: int = 1  # 1 = no retries
    simulation_retry_backoff: float = 0.5
    simulation_validate_bands: bool = False  # reject p5 > mean or mean > p95
    simulation_parallel: bool = False

    # Run defaults
    run_paths: int = 200
    run_steps: int = 200
    run_maturity: float = 1.0
    run_r_dom: float = 0.03
    run_r_for: float = 0.01

    # Model defaults
    gbm_spot: float = 1.10
    gbm_sigma: float = 0.15
    gbm_mu: float = 0.05
    ou_spot: float = 1.10
    ou_kappa: float = 3.0
    ou_theta: float = 1.10
    ou_sigma: float = 0.12

    # Shock defaults
    shock_target: str = "spot"
    shock_magnitude_pct: int = 20

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    # Logging
    log_dir: str = "logs"

    def default_params(self, model: str):
        """Form defaults for the given model ('gbm' or 'ou')."""
        from fxsense.sensitivity import GBMParams, OUParams, SimModel

        if SimModel(model) == SimModel.GBM:
            return GBMParams(spot=self.gbm_spot, sigma=self.gbm_sigma, mu=self.gbm_mu)
        return OUParams(
            spot=self.ou_spot, kappa=self.ou_kappa, theta=self.ou_theta, sigma=self.ou_sigma
        )

    def default_run_config(self):
        from fxsense.sensitivity import RunConfig

        return RunConfig(
            maturity=self.run_maturity,
            r_dom=self.run_r_dom,
            r_for=self.run_r_for,
            paths=self.run_paths,
            steps=self.run_steps,
        )
