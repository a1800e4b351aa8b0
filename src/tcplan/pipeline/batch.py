"""Batch generation: many projects, one after another.

One project's failure never stops the batch. Each input gets exactly one
``BatchItemResult``, in input order, and every log line for an item carries
that item's correlation_id.
"""

import logging
import uuid
from datetime import datetime
from typing import Iterable

from tcplan.core.errors import ValidationError
from tcplan.core.types import (
    BatchItemResult,
    BatchSummary,
    ProjectInput,
    ValidationSummary,
    ValidationSummaryEntry,
    is_absent,
)
from tcplan.observability.logging import correlation_scope, plan_fields
from tcplan.pipeline.generate import PlanGenerator
from tcplan.pipeline.validator import validate_project
from tcplan.rules import RuleTable

logger = logging.getLogger(__name__)


def _project_name(project: ProjectInput) -> str | None:
    name = project.project_name
    return None if is_absent(name) else str(name)


async def generate_many(
    generator: PlanGenerator,
    projects: Iterable[ProjectInput],
) -> list[BatchItemResult]:
    """Generate a plan per project, sequentially.

    Returns:
        One result per input, in input order.
    """
    projects = list(projects)
    batch_id = uuid.uuid4().hex[:8]
    logger.info("Generating %d plans (batch %s)", len(projects), batch_id)

    results: list[BatchItemResult] = []
    for i, project in enumerate(projects, 1):
        name = _project_name(project)
        with correlation_scope(f"{batch_id}-{i}"):
            try:
                artifacts = await generator.generate(project)
                results.append(BatchItemResult(success=True, project_name=name, artifacts=artifacts))
            except ValidationError as e:
                logger.error(
                    "Project %d/%d (%s) rejected: %s", i, len(projects), name, e,
                    extra=plan_fields(name, step="batch"),
                )
                results.append(BatchItemResult(
                    success=False, project_name=name, error=str(e), errors=list(e.errors),
                ))
            except Exception as e:
                logger.error(
                    "Project %d/%d (%s) failed: %s", i, len(projects), name, e,
                    extra=plan_fields(name, step="batch"),
                )
                results.append(BatchItemResult(success=False, project_name=name, error=str(e)))

    summary = summarize(results)
    logger.info(
        "Batch %s done: %d/%d successful", batch_id, summary.successful, summary.total,
    )
    return results


def summarize(results: list[BatchItemResult]) -> BatchSummary:
    successful = sum(1 for r in results if r.success)
    return BatchSummary(total=len(results), successful=successful, failed=len(results) - successful)


def validate_many(
    projects: Iterable[ProjectInput],
    rules: RuleTable | None = None,
    now: datetime | None = None,
) -> ValidationSummary:
    """Validate without rendering; sort projects into valid / invalid / with-warnings.

    A project with warnings also appears under ``valid`` or ``invalid``.
    """
    summary = ValidationSummary()
    for index, project in enumerate(projects):
        result = validate_project(project, rules, now=now)
        name = _project_name(project)
        if result.is_valid:
            summary.valid.append(ValidationSummaryEntry(index=index, project_name=name))
        else:
            summary.invalid.append(
                ValidationSummaryEntry(index=index, project_name=name, messages=list(result.errors))
            )
        if result.warnings:
            summary.warnings.append(
                ValidationSummaryEntry(index=index, project_name=name, messages=list(result.warnings))
            )
    return summary
