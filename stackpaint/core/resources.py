"""
Resource Bridge
===============

Resolves image references (http(s) URLs, data URIs, file paths and inline
SVG markup) to decoded Pillow images for the compositor.
"""

import asyncio
import base64
import io
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.parse import unquote, unquote_to_bytes, urlparse

import aiohttp
import cairosvg
from PIL import Image, UnidentifiedImageError

from stackpaint.config.logging import get_logger
from stackpaint.config.settings import get_settings
from stackpaint.core.errors import ResourceResolutionError

logger = get_logger(__name__)

SVG_MIME_TYPE = "image/svg+xml"


class ResourceBridge(Protocol):
    """Anything that can turn a reference into a decoded bitmap."""

    async def resolve(self, reference: str) -> Image.Image:
        """Resolve ``reference``.

        Raises:
            ResourceResolutionError: If the resource cannot be fetched or decoded
        """
        ...


def is_inline_svg(reference: str) -> bool:
    head = reference.lstrip()[:256].lower()
    return head.startswith("<svg") or (head.startswith("<?xml") and "<svg" in reference[:1024].lower())


def decode_image(reference: str, data: bytes, mime_type: Optional[str] = None) -> Image.Image:
    """Decode raster bytes with Pillow, or rasterise SVG bytes with cairosvg first.

    Malformed SVG surfaces from cairosvg as an XML ``ParseError``, a
    ``SyntaxError`` subclass.

    Raises:
        ResourceResolutionError: If the bytes cannot be decoded
    """
    try:
        if mime_type == SVG_MIME_TYPE or is_inline_svg(data[:1024].decode("utf-8", "ignore")):
            data = cairosvg.svg2png(bytestring=data)
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise ResourceResolutionError(reference, f"decode failed: {e}") from e


class ImageResourceBridge:
    """Default bridge: fetches over HTTP with aiohttp and decodes with Pillow and cairosvg."""

    def __init__(self, base_path: Optional[Path] = None):
        self.settings = get_settings()
        self.base_path = base_path or Path.cwd()
        self.logger: Any = logger.bind(component="resource_bridge")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.resource_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "ImageResourceBridge":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def resolve(self, reference: str) -> Image.Image:
        if is_inline_svg(reference):
            return decode_image("inline svg", reference.encode("utf-8"), SVG_MIME_TYPE)

        scheme = urlparse(reference).scheme.lower()
        if scheme == "data":
            return self._resolve_data_uri(reference)
        if scheme in ("http", "https"):
            return await self._fetch(reference)
        return await self._read_file(reference)

    def _resolve_data_uri(self, reference: str) -> Image.Image:
        header, separator, payload = reference[5:].partition(",")
        if not separator:
            raise ResourceResolutionError(reference, "malformed data URI")
        parts = header.split(";")
        mime_type = parts[0].lower() or None
        try:
            if "base64" in parts[1:]:
                data = base64.b64decode(unquote(payload), validate=False)
            else:
                data = unquote_to_bytes(payload)
        except ValueError as e:
            raise ResourceResolutionError(reference, f"invalid payload: {e}") from e
        return decode_image(reference, data, mime_type)

    async def _fetch(self, reference: str) -> Image.Image:
        try:
            session = await self._get_session()
            async with session.get(reference) as response:
                if response.status != 200:
                    raise ResourceResolutionError(reference, f"HTTP {response.status}")
                if (response.content_length or 0) > self.settings.max_resource_bytes:
                    raise ResourceResolutionError(reference, "resource too large")
                data = await response.read()
                mime_type = response.content_type
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ResourceResolutionError(reference, f"fetch failed: {e}") from e

        if len(data) > self.settings.max_resource_bytes:
            raise ResourceResolutionError(reference, "resource too large")
        self.logger.debug("Resource fetched", reference=reference[:255], size=len(data))
        return decode_image(reference, data, mime_type)

    async def _read_file(self, reference: str) -> Image.Image:
        parsed = urlparse(reference)
        path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(reference)
        if not path.is_absolute():
            path = self.base_path / path
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ResourceResolutionError(reference, f"read failed: {e}") from e
        mime_type = SVG_MIME_TYPE if path.suffix.lower() == ".svg" else None
        return decode_image(reference, data, mime_type)
