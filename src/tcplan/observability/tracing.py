"""Thin MLflow wrapper for pipeline tracing and run logging.

Spans come from ``@trace`` on the pipeline stages. Runs, params, metrics
and tags are only written when ``settings.mlflow_enabled`` is set.

Usage:

    from tcplan.observability.tracing import trace, start_run, log_params

    @trace(name="assemble_record", span_type="TOOL")
    def assemble_record(...): ...

    with start_run(run_name="plan_I-40"):
        log_params({"speed_limit": 55})
"""

import logging
from contextlib import contextmanager

import mlflow

from tcplan.config import settings

logger = logging.getLogger(__name__)


def configure_tracing() -> None:
    """Point MLflow at the configured backend, or switch tracing off entirely."""
    if settings.mlflow_enabled:
        mlflow.set_tracking_uri(settings.mlflow_tracking_uri)
        mlflow.set_experiment(settings.mlflow_experiment_name)
        mlflow.config.enable_async_logging()
        logger.debug("MLflow tracking enabled → %s", settings.mlflow_tracking_uri)
    else:
        mlflow.tracing.disable()
        logger.debug("MLflow tracking disabled")


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------

def trace(name: str | None = None, **kwargs):
    """Decorator: wraps a sync or async function in an MLflow span."""
    return mlflow.trace(name=name, **kwargs) if name else mlflow.trace(**kwargs)


# ---------------------------------------------------------------------------
# Run context + logging (no-op unless enabled)
# ---------------------------------------------------------------------------

@contextmanager
def start_run(**kwargs):
    """Context manager: MLflow run when enabled, otherwise yields None."""
    if settings.mlflow_enabled:
        with mlflow.start_run(**kwargs) as run:
            yield run
    else:
        yield None


def log_params(params: dict) -> None:
    if settings.mlflow_enabled:
        try:
            mlflow.log_params(params)
        except Exception as e:
            logger.debug("log_params failed: %s", e)


def log_metrics(metrics: dict, step: int | None = None) -> None:
    if settings.mlflow_enabled:
        try:
            mlflow.log_metrics(metrics, step=step)
        except Exception as e:
            logger.debug("log_metrics failed: %s", e)


def log_dict(data: dict, artifact_file: str) -> None:
    if settings.mlflow_enabled:
        try:
            mlflow.log_dict(data, artifact_file)
        except Exception as e:
            logger.debug("log_dict failed: %s", e)


def set_tag(key: str, value: str) -> None:
    if settings.mlflow_enabled:
        try:
            mlflow.set_tag(key, value)
        except Exception as e:
            logger.debug("set_tag failed: %s", e)
