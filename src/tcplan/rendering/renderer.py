"""Page renderer boundary: "given HTML, produce a PDF".

The pipeline only sees the ``PageRenderer`` protocol: open a session,
render one page into a file, close the session. The renderer is injected
into ``PlanGenerator`` rather than reached through a module global.

``PlaywrightRenderer`` is the production implementation: one headless
Chromium per renderer, one browser page per session. Sessions are not
meant to overlap; the pipeline renders pages strictly one after another.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from playwright.async_api import Browser, Playwright, async_playwright

from tcplan.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageOptions:
    """Print options passed through to the renderer."""

    format: str = "A4"
    landscape: bool = True
    margin: dict[str, str] = field(default_factory=lambda: {
        "top": "0.5in", "right": "0.5in", "bottom": "0.5in", "left": "0.5in",
    })
    print_background: bool = True

    @classmethod
    def from_settings(cls) -> "PageOptions":
        m = settings.page_margin
        return cls(
            format=settings.page_format,
            landscape=settings.page_landscape,
            margin={"top": m, "right": m, "bottom": m, "left": m},
        )


class RendererSession(Protocol):
    async def render_pdf(self, html: str, output_path: Path, options: PageOptions) -> Path:
        """Render ``html`` to a PDF at ``output_path`` and return the path."""
        ...

    async def close(self) -> None: ...


class PageRenderer(Protocol):
    async def open_session(self) -> RendererSession: ...

    async def health_check(self) -> dict: ...


# ---------------------------------------------------------------------------
# Playwright / headless Chromium
# ---------------------------------------------------------------------------

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--no-first-run",
    "--no-default-browser-check",
]
FALLBACK_BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]
VIEWPORT = {"width": 1200, "height": 800}


class PlaywrightSession:
    """One Chromium page, used for a single render."""

    def __init__(self, page, timeout_ms: int):
        self._page = page
        self._timeout_ms = timeout_ms

    async def render_pdf(self, html: str, output_path: Path, options: PageOptions) -> Path:
        await self._page.set_content(html, wait_until="networkidle", timeout=self._timeout_ms)
        await self._page.pdf(
            path=str(output_path),
            format=options.format,
            landscape=options.landscape,
            margin=options.margin,
            print_background=options.print_background,
            prefer_css_page_size=False,
        )
        return output_path

    async def ping(self) -> None:
        await self._page.set_content("<html><body><h1>Health Check</h1></body></html>")

    async def close(self) -> None:
        await self._page.close()


class PlaywrightRenderer:
    """Headless Chromium renderer. Launches lazily on first session.

    Usage:
        async with PlaywrightRenderer() as renderer:
            generator = PlanGenerator(renderer=renderer)
            await generator.generate(project)
    """

    def __init__(self, timeout_ms: int | None = None, executable_path: str | None = None):
        self.timeout_ms = timeout_ms or settings.render_timeout_ms
        self.executable_path = executable_path or settings.browser_executable_path or None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> "PlaywrightRenderer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        async with self._start_lock:
            if self._browser is not None:
                return
            logger.info("Launching headless Chromium...")
            self._playwright = await async_playwright().start()
            try:
                self._browser = await self._playwright.chromium.launch(
                    headless=True,
                    args=BROWSER_ARGS,
                    executable_path=self.executable_path,
                    timeout=60_000,
                )
            except Exception as e:
                logger.warning("Browser launch failed (%s): retrying with minimal flags", e)
                try:
                    self._browser = await self._playwright.chromium.launch(
                        headless=True,
                        args=FALLBACK_BROWSER_ARGS,
                        executable_path=self.executable_path,
                        timeout=30_000,
                    )
                except Exception:
                    await self._playwright.stop()
                    self._playwright = None
                    raise
            logger.info("Browser launched")

    async def open_session(self) -> PlaywrightSession:
        if self._browser is None:
            await self.start()
        page = await self._browser.new_page(viewport=VIEWPORT)
        return PlaywrightSession(page, self.timeout_ms)

    async def health_check(self) -> dict:
        try:
            session = await self.open_session()
            try:
                await session.ping()
            finally:
                await session.close()
            return {"status": "healthy", "browser": "connected"}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

    async def close(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning("Error closing browser: %s", e)
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
