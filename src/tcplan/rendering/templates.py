"""HTML page templates (Jinja2) for the three plan pages."""

from dataclasses import dataclass

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from tcplan.core.types import RenderingRecord
from tcplan.rendering.images import EmbeddedImage


@dataclass(frozen=True)
class PageSpec:
    number: int
    template: str
    label: str


PAGES: tuple[PageSpec, ...] = (
    PageSpec(1, "page1-traffic-plan.html", "overview/imagery"),
    PageSpec(2, "page2-general-info.html", "general information"),
    PageSpec(3, "page3-work-zone.html", "work-zone detail"),
)


def page_spec(number: int) -> PageSpec:
    for spec in PAGES:
        if spec.number == number:
            return spec
    raise KeyError(f"Unknown page: {number!r}. Pages are {[p.number for p in PAGES]}")


def _feet(value) -> str:
    """2000 → '2,000 ft'."""
    return f"{value:,.0f} ft"


def _number(value) -> str:
    """70.0 → '70', 12.5 → '12.5'."""
    return f"{value:g}"


def _yes_no(value) -> str:
    return "YES" if value else "NO"


def build_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("tcplan", "templates"),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["feet"] = _feet
    env.filters["number"] = _number
    env.filters["yes_no"] = _yes_no
    return env


_env: Environment | None = None


def render_page_html(
    number: int,
    record: RenderingRecord,
    image: EmbeddedImage | None = None,
) -> str:
    """Render one page's markup from the rendering record."""
    global _env
    if _env is None:
        _env = build_environment()
    spec = page_spec(number)
    template = _env.get_template(spec.template)
    return template.render(record=record, image=image, page=spec)
