"""Satellite image embedding for page 1.

Reads the image off the event loop and turns it into a base64 data URI.
SVG images also carry their raw markup so templates can inline them.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from tcplan.core.errors import ImageLoadError

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class EmbeddedImage:
    path: Path
    mime_type: str
    data_uri: str
    svg_markup: str | None = None


def mime_type_for(path: str | Path) -> str:
    """MIME type from the file extension; unknown extensions are treated as PNG."""
    return MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


async def load_embedded_image(path: str | Path) -> EmbeddedImage:
    """Read an image and encode it as a data URI.

    Raises:
        ImageLoadError: the file is missing, unreadable, or (for SVG) not UTF-8.
    """
    resolved = Path(path).expanduser().resolve()
    try:
        data = await asyncio.to_thread(resolved.read_bytes)
    except OSError as e:
        raise ImageLoadError(resolved, e.strerror or str(e)) from e

    mime_type = mime_type_for(resolved)
    svg_markup = None
    if mime_type == "image/svg+xml":
        try:
            svg_markup = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImageLoadError(resolved, "SVG is not valid UTF-8") from e

    encoded = base64.b64encode(data).decode("ascii")
    image = EmbeddedImage(
        path=resolved,
        mime_type=mime_type,
        data_uri=f"data:{mime_type};base64,{encoded}",
        svg_markup=svg_markup,
    )
    logger.info(
        "Loaded satellite image %s (%s, %d chars)",
        resolved.name, mime_type, len(image.data_uri),
    )
    return image
