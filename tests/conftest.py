"""Shared test fixtures."""

from datetime import datetime
from pathlib import Path

import mlflow
import pytest
from pypdf import PdfWriter

from tcplan.core.types import ProjectInput
from tcplan.observability.logging import get_correlation_id
from tcplan.rendering.renderer import PageOptions
from tcplan.rules import clear_rules_cache, load_rules

FIXED_NOW = datetime(2025, 6, 15, 10, 30, 0)


@pytest.fixture(scope="session", autouse=True)
def _disable_mlflow_tracing(tmp_path_factory):
    """Keep MLflow tracing off for the whole session, with any store under a temp dir."""
    tracking_dir = tmp_path_factory.mktemp("mlflow")
    mlflow.set_tracking_uri(f"sqlite:///{tracking_dir / 'mlflow.db'}")
    mlflow.tracing.disable()
    yield


@pytest.fixture(autouse=True)
def _clear_rules_cache():
    clear_rules_cache()
    yield
    clear_rules_cache()


@pytest.fixture
def rules():
    return load_rules()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def valid_project():
    return ProjectInput(
        project_name="I-95 Resurfacing",
        site_location="I-95 NB, MM 12 to MM 14",
        speed_limit=55,
        work_zone_length=2000,
        road_type="arterial",
        estimated_duration_hours=8,
        index_number="102-603",
        issue_date="01/15/2024",
        expiration_date="01/15/2027",
        certificate_number="WZ-1234",
        instructor_name="J. Rivera",
    )


# ---------------------------------------------------------------------------
# Fake page renderer: writes real one-page PDFs so merging can be exercised
# ---------------------------------------------------------------------------

def write_blank_pdf(path: Path, width: float = 842, height: float = 595) -> Path:
    writer = PdfWriter()
    writer.add_blank_page(width=width, height=height)
    with open(path, "wb") as f:
        writer.write(f)
    return path


class FakeSession:
    def __init__(self, renderer: "FakeRenderer"):
        self._renderer = renderer

    async def render_pdf(self, html: str, output_path: Path, options: PageOptions) -> Path:
        self._renderer.rendered.append({
            "path": output_path,
            "html": html,
            "options": options,
            "correlation_id": get_correlation_id(),
        })
        if self._renderer.fail_on and self._renderer.fail_on in output_path.name:
            raise RuntimeError("renderer crashed")
        return write_blank_pdf(output_path)

    async def close(self) -> None:
        self._renderer.open_sessions -= 1
        self._renderer.closed += 1
        if self._renderer.fail_close:
            raise RuntimeError("close failed")


class FakeRenderer:
    """In-memory PageRenderer.

    ``fail_on`` is matched against output file names, so ``"_page2_"``
    fails page 2 of every plan and ``"Bad_Project_page2"`` only that project's.
    """

    def __init__(self, fail_on: str | None = None, fail_close: bool = False):
        self.fail_on = fail_on
        self.fail_close = fail_close
        self.rendered: list[dict] = []
        self.opened = 0
        self.closed = 0
        self.open_sessions = 0
        self.max_open_sessions = 0

    async def open_session(self) -> FakeSession:
        self.opened += 1
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return FakeSession(self)

    async def health_check(self) -> dict:
        return {"status": "healthy", "browser": "fake"}


@pytest.fixture
def make_renderer():
    return FakeRenderer


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def blank_pdf():
    return write_blank_pdf


@pytest.fixture
def make_generator(rules, fixed_now, tmp_path):
    """Build a PlanGenerator wired to a fake renderer, a fixed clock and tmp_path."""
    from tcplan.pipeline.generate import PlanGenerator

    def _make(renderer, **kwargs):
        kwargs.setdefault("rules", rules)
        kwargs.setdefault("output_dir", tmp_path)
        kwargs.setdefault("clock", lambda: fixed_now)
        kwargs.setdefault("options", PageOptions())
        kwargs.setdefault("debug_html", False)
        return PlanGenerator(renderer, **kwargs)

    return _make
