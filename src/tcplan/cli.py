"""tcplan CLI: generate, batch-generate and validate traffic control plans."""

import asyncio
import sys

from tcplan.config import settings
from tcplan.core.errors import TCPlanError, ValidationError
from tcplan.observability.logging import setup_logging
from tcplan.observability.tracing import configure_tracing


def _init() -> None:
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    configure_tracing()


def _print_artifacts(artifacts) -> None:
    for n, page in enumerate((artifacts.page1, artifacts.page2, artifacts.page3), 1):
        print(f"  Page {n}:   {page}")
    if artifacts.combined:
        print(f"  Combined: {artifacts.combined}")
    else:
        print("  Combined: (not produced; individual pages are complete)")
    for warning in artifacts.validation.warnings:
        print(f"  Warning:  {warning}")


def main() -> None:
    """Generate one plan: tcplan <project.json>"""
    _init()

    if len(sys.argv) < 2:
        print("Usage: tcplan <project.json>")
        print("  Example: tcplan examples/i95-resurfacing.json")
        sys.exit(1)

    from tcplan.pipeline.intake import load_projects

    try:
        projects = load_projects(sys.argv[1])
    except (OSError, ValueError, TypeError) as e:
        print(f"Could not read {sys.argv[1]}: {e}")
        sys.exit(1)

    if len(projects) != 1:
        print(f"Expected one project, found {len(projects)}. Use tcplan-batch for several.")
        sys.exit(1)

    try:
        artifacts = asyncio.run(_generate_one(projects[0]))
    except ValidationError as e:
        print("Validation failed:")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)
    except TCPlanError as e:
        print(f"Generation failed: {e}")
        sys.exit(1)

    print("\nTraffic control plan generated:")
    _print_artifacts(artifacts)


async def _generate_one(project):
    from tcplan.pipeline.generate import PlanGenerator
    from tcplan.rendering.renderer import PlaywrightRenderer

    async with PlaywrightRenderer() as renderer:
        generator = PlanGenerator(renderer)
        return await generator.generate(project)


def batch_main() -> None:
    """Generate many plans: tcplan-batch <projects.json>"""
    _init()

    if len(sys.argv) < 2:
        print("Usage: tcplan-batch <projects.json>")
        print("  The file holds a JSON list of project objects.")
        sys.exit(1)

    from tcplan.pipeline.batch import summarize
    from tcplan.pipeline.intake import load_projects

    try:
        projects = load_projects(sys.argv[1])
    except (OSError, ValueError, TypeError) as e:
        print(f"Could not read {sys.argv[1]}: {e}")
        sys.exit(1)

    results = asyncio.run(_generate_batch(projects))

    print("\nBatch results:")
    for i, result in enumerate(results, 1):
        name = result.project_name or "(unnamed)"
        if result.success:
            combined = result.artifacts.combined or "pages only"
            print(f"  {i}. OK    {name}: {combined}")
        else:
            print(f"  {i}. FAIL  {name}: {result.error}")

    summary = summarize(results)
    print(f"\nTotal: {summary.total}  Successful: {summary.successful}  Failed: {summary.failed}")
    if summary.failed:
        sys.exit(1)


async def _generate_batch(projects):
    from tcplan.pipeline.batch import generate_many
    from tcplan.pipeline.generate import PlanGenerator
    from tcplan.rendering.renderer import PlaywrightRenderer

    async with PlaywrightRenderer() as renderer:
        return await generate_many(PlanGenerator(renderer), projects)


def validate_main() -> None:
    """Validate without rendering: tcplan-validate <project.json>"""
    _init()

    if len(sys.argv) < 2:
        print("Usage: tcplan-validate <project.json>")
        sys.exit(1)

    from tcplan.pipeline.assembler import assemble_record
    from tcplan.pipeline.batch import validate_many
    from tcplan.pipeline.intake import load_projects

    try:
        projects = load_projects(sys.argv[1])
    except (OSError, ValueError, TypeError) as e:
        print(f"Could not read {sys.argv[1]}: {e}")
        sys.exit(1)

    summary = validate_many(projects)
    warnings = {entry.index: entry.messages for entry in summary.warnings}

    for entry in summary.invalid:
        print(f"\n[{entry.index}] {entry.project_name or '(unnamed)'}: INVALID")
        for error in entry.messages:
            print(f"  - {error}")

    for entry in summary.valid:
        record = assemble_record(projects[entry.index])
        spacing = record.spacing
        print(f"\n[{entry.index}] {record.project_name}: valid")
        print(f"  Speed / road:       {record.speed_limit} mph / {record.road_type}")
        print(f"  Cone spacing:       {spacing.cone_spacing:g} ft")
        print(f"  Barricade spacing:  {spacing.barricade_spacing:g} ft")
        print(f"  Taper length:       {spacing.taper_length:g} ft")
        print(f"  Buffer length:      {spacing.buffer_length:g} ft")
        print(f"  Sign spacing:       {spacing.sign_spacing:g} ft")
        print(f"  Advance warning:    {record.advance_warning.urban:g} ft urban / "
              f"{record.advance_warning.rural:g} ft rural")
        print(f"  Queue length:       {record.queue_length:,.0f} ft")
        print(f"  Rumble strips:      {'required' if record.requires_rumble_strips else 'not required'}")
        if record.plan_type:
            print(f"  Plan type:          {record.plan_type.index_number} {record.plan_type.name}")
        for warning in warnings.get(entry.index, []):
            print(f"  Warning:            {warning}")

    print(f"\nValid: {len(summary.valid)}  Invalid: {len(summary.invalid)}")
    if summary.invalid:
        sys.exit(1)


if __name__ == "__main__":
    main()
