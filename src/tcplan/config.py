"""tcplan configuration: paths, renderer options, logging and tracing settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Rule table: None means the copy bundled with the package
    rules_path: Path | None = None

    # Output
    output_dir: Path = Path("output")
    debug_html: bool = False

    # Page renderer (headless Chromium via Playwright)
    render_timeout_ms: int = 30_000
    page_format: str = "A4"
    page_landscape: bool = True
    page_margin: str = "0.5in"
    browser_executable_path: str = ""

    @field_validator("page_margin", "browser_executable_path")
    @classmethod
    def _strip(cls, value: str) -> str:
        """Strip whitespace/newlines: common paste error in .env files."""
        return value.strip()

    # MLflow: runs, params and metrics are written only when enabled
    mlflow_enabled: bool = False
    mlflow_tracking_uri: str = "sqlite:///mlruns/mlflow.db"
    mlflow_experiment_name: str = "tcplan"

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "TCPLAN_", "extra": "ignore"}


settings = Settings()
