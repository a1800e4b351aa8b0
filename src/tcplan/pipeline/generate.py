"""Plan generation pipeline: validate → assemble → render × 3 → merge.

Orchestrates one traffic control plan from raw project input to PDF files
on disk. The renderer is injected, so the same pipeline runs against
headless Chromium in production and a fake renderer in tests.

Failure handling:
  - invalid input         ValidationError, raised before any rendering
  - unreadable image      warning on the result, page 1 rendered without it
  - page render failure   RenderError for that page, nothing merged
  - merge failure         warning logged, ``combined`` left as None
"""

import asyncio
import dataclasses
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Callable

from tcplan.config import settings
from tcplan.core.errors import ImageLoadError, MergeError, RenderError, ValidationError
from tcplan.core.types import (
    AdvanceWarning,
    PlanArtifactSet,
    ProjectInput,
    RenderingRecord,
    SpacingRequirements,
    ValidationResult,
)
from tcplan.observability.logging import plan_fields
from tcplan.observability.tracing import log_dict, log_metrics, log_params, set_tag, start_run, trace
from tcplan.pipeline import calculator
from tcplan.pipeline.assembler import assemble_record
from tcplan.pipeline.validator import validate_project
from tcplan.rendering.images import EmbeddedImage, load_embedded_image
from tcplan.rendering.merge import merge_pdfs
from tcplan.rendering.renderer import PageOptions, PageRenderer
from tcplan.rendering.templates import PAGES, PageSpec, page_spec, render_page_html
from tcplan.rules import RuleTable, get_rules

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"[^A-Za-z0-9]")
DEBUG_HTML_DIR = "debug"


def slugify(project_name: str) -> str:
    """File-name-safe form of a project name: every non-alphanumeric becomes ``_``."""
    return _SLUG_PATTERN.sub("_", project_name)


def _stamp(now: datetime) -> int:
    """Epoch milliseconds, used to keep output file names unique per run."""
    return int(now.timestamp() * 1000)


class PlanGenerator:
    """Generates traffic control plan PDFs for one project at a time.

    Usage:
        async with PlaywrightRenderer() as renderer:
            generator = PlanGenerator(renderer)
            artifacts = await generator.generate(project)
    """

    def __init__(
        self,
        renderer: PageRenderer,
        rules: RuleTable | None = None,
        output_dir: str | Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
        options: PageOptions | None = None,
        debug_html: bool | None = None,
    ):
        self.renderer = renderer
        self.rules = rules or get_rules()
        self.output_dir = Path(output_dir) if output_dir is not None else settings.output_dir
        self.clock = clock
        self.options = options or PageOptions.from_settings()
        self.debug_html = settings.debug_html if debug_html is None else debug_html

    # ------------------------------------------------------------------
    # Validation / calculations (no rendering)
    # ------------------------------------------------------------------

    def validate(self, project: ProjectInput) -> ValidationResult:
        return validate_project(project, self.rules, now=self.clock())

    def spacing_calculations(self, speed_limit: float, road_type: str = "arterial") -> dict:
        """Spacing, advance-warning and rumble-strip figures for a speed and road type."""
        spacing: SpacingRequirements = calculator.spacing_requirements(
            speed_limit, road_type, self.rules
        )
        advance: AdvanceWarning = calculator.advance_warning_distances(speed_limit)
        return {
            "speed_limit": speed_limit,
            "road_type": road_type,
            "spacing": spacing,
            "advance_warning": advance,
            "requires_rumble_strips": calculator.requires_rumble_strips(
                speed_limit, calculator.RUMBLE_STRIP_MIN_DURATION_HOURS
            ),
        }

    def _validated_record(self, project: ProjectInput) -> tuple[ValidationResult, RenderingRecord, datetime]:
        now = self.clock()
        validation = validate_project(project, self.rules, now=now)
        if not validation.is_valid:
            raise ValidationError(validation.errors)
        return validation, assemble_record(project, self.rules, now=now), now

    async def preview_html(self, project: ProjectInput, page: int = 1) -> str:
        """Markup for one page, without rendering it to PDF."""
        spec = page_spec(page)
        _, record, _ = self._validated_record(project)
        image = None
        if spec.number == 1 and record.satellite_image_path:
            try:
                image = await load_embedded_image(record.satellite_image_path)
            except ImageLoadError as e:
                logger.warning("Preview without satellite image: %s", e)
        return render_page_html(spec.number, record, image)

    async def health_check(self) -> dict:
        return await self.renderer.health_check()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @trace(name="generate_plan", span_type="CHAIN")
    async def generate(self, project: ProjectInput) -> PlanArtifactSet:
        """Run the full pipeline for one project.

        Raises:
            ValidationError: the input failed validation; nothing was rendered.
            RenderError: a page failed to render; no combined file was made.
        """
        started = time.perf_counter()
        try:
            validation, record, now = self._validated_record(project)
        except ValidationError as e:
            logger.warning(
                "Validation failed: %s", "; ".join(e.errors),
                extra=plan_fields(project, step="validate"),
            )
            raise

        for warning in validation.warnings:
            logger.warning("Validation warning: %s", warning, extra=plan_fields(record, step="validate"))

        slug = slugify(record.project_name)
        stamp = _stamp(now)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "=== Generating plan for %s (%s mph, %s ft) ===",
            record.project_name, record.speed_limit, record.work_zone_length,
            extra=plan_fields(record, step="generate"),
        )

        with start_run(run_name=f"plan_{slug}"):
            log_params({
                "project_name": record.project_name,
                "speed_limit": record.speed_limit,
                "work_zone_length": record.work_zone_length,
                "road_type": record.road_type,
                "index_number": record.index_number,
            })
            log_dict(dataclasses.asdict(record.spacing), "spacing.json")

            # Step 1: Satellite image (optional, page 1 only)
            image, validation = await self._load_image(record, validation)

            # Step 2: Render pages, one session at a time
            pages: dict[int, Path] = {}
            for spec in PAGES:
                path = self.output_dir / f"{slug}_page{spec.number}_{stamp}.pdf"
                page_image = image if spec.number == 1 else None
                pages[spec.number] = await self._render_page(spec, record, page_image, path)

            # Step 3: Merge
            combined_path = self.output_dir / f"{slug}_complete_plan_{stamp}.pdf"
            combined = await self._merge([pages[spec.number] for spec in PAGES], combined_path)

            duration_ms = round((time.perf_counter() - started) * 1000)
            log_metrics({
                "pages_rendered": len(pages),
                "warnings": len(validation.warnings),
                "duration_ms": duration_ms,
            })
            set_tag("combined", "yes" if combined else "no")

        logger.info(
            "Plan complete for %s in %d ms (%d warnings)",
            record.project_name, duration_ms, len(validation.warnings),
            extra=plan_fields(record, step="generate", duration_ms=duration_ms),
        )

        return PlanArtifactSet(
            page1=pages[1],
            page2=pages[2],
            page3=pages[3],
            combined=combined,
            validation=validation,
        )

    async def _load_image(
        self, record: RenderingRecord, validation: ValidationResult
    ) -> tuple[EmbeddedImage | None, ValidationResult]:
        if not record.satellite_image_path:
            return None, validation
        try:
            image = await load_embedded_image(record.satellite_image_path)
        except ImageLoadError as e:
            logger.warning(
                "Could not load satellite image: %s", e,
                extra=plan_fields(record, page=1, step="image"),
            )
            return None, validation.with_warning(f"Could not load satellite image: {e}")
        return image, validation

    async def _render_page(
        self,
        spec: PageSpec,
        record: RenderingRecord,
        image: EmbeddedImage | None,
        output_path: Path,
    ) -> Path:
        """Render one page in its own renderer session. The session is always closed."""
        logger.info(
            "Rendering page %d (%s)", spec.number, spec.label,
            extra=plan_fields(record, page=spec.number, step="render"),
        )
        session = None
        try:
            html = render_page_html(spec.number, record, image)
            if self.debug_html:
                try:
                    await asyncio.to_thread(self._write_debug_html, html, output_path, spec)
                except OSError as debug_error:
                    logger.warning(
                        "Could not write debug HTML: %s", debug_error,
                        extra=plan_fields(record, page=spec.number, step="debug_html"),
                    )
            session = await self.renderer.open_session()
            await session.render_pdf(html, output_path, self.options)
        except Exception as e:
            logger.error(
                "Page %d (%s) failed: %s", spec.number, spec.label, e,
                extra=plan_fields(record, page=spec.number, step="render"),
            )
            raise RenderError(spec.number, spec.label, str(e) or type(e).__name__) from e
        finally:
            if session is not None:
                try:
                    await session.close()
                except Exception as close_error:
                    logger.warning("Error closing renderer session: %s", close_error)
        return output_path

    async def _merge(self, page_paths: list[Path], output_path: Path) -> Path | None:
        try:
            return await asyncio.to_thread(merge_pdfs, page_paths, output_path)
        except MergeError as e:
            logger.warning(
                "Could not combine PDFs, returning individual pages: %s", e,
                extra=plan_fields(step="merge"),
            )
            return None

    def _write_debug_html(self, html: str, pdf_path: Path, spec: PageSpec) -> None:
        debug_dir = self.output_dir / DEBUG_HTML_DIR
        debug_dir.mkdir(parents=True, exist_ok=True)
        path = debug_dir / f"{pdf_path.stem}.html"
        path.write_text(html, encoding="utf-8")
        logger.debug("Wrote debug HTML for page %d → %s", spec.number, path)
