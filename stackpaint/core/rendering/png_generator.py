"""
PNG Generator
=============

Renders an element tree through the compositor and encodes the resulting
surface as PNG with Pillow, optionally optimizing the output.
"""

import base64
import io
import time
from typing import Any, Dict, Optional, Type

import numpy as np
from PIL import Image

from stackpaint.config.logging import get_logger
from stackpaint.config.settings import Settings, get_settings
from stackpaint.core.errors import SurfaceError
from stackpaint.core.paint.compositor import render
from stackpaint.core.resources import ImageResourceBridge, ResourceBridge
from stackpaint.models.schemas import ElementNode, PNGResult, RenderOptions

logger = get_logger(__name__)

# Channel value above which a pixel counts as near-white
NEAR_WHITE = 240


class PNGGenerationError(Exception):
    """Exception raised when PNG generation fails."""

    pass


class PNGGenerator:
    """Cairo compositor backed PNG generator."""

    def __init__(self, bridge: Optional[ResourceBridge] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(generator="compositor")
        self.bridge = bridge
        self._own_bridge = bridge is None

    async def close(self) -> None:
        """Release the resource bridge if this generator created it."""
        if self._own_bridge and isinstance(self.bridge, ImageResourceBridge):
            await self.bridge.close()
            self.bridge = None

    async def _get_bridge(self) -> ResourceBridge:
        if self.bridge is None:
            self.bridge = ImageResourceBridge()
        return self.bridge

    async def generate_png(self, root: ElementNode, options: RenderOptions) -> PNGResult:
        """
        Generate PNG from an element tree.

        Args:
            root: Root element of the tree to render
            options: Rendering options

        Returns:
            PNGResult containing PNG data and metadata

        Raises:
            PNGGenerationError: If the surface cannot be painted or encoded
        """
        start_time = time.time()
        try:
            self.logger.info(
                "Generating PNG from element tree",
                root=root.name,
                width=options.width,
                height=options.height,
                scale=options.scale,
            )

            bridge = await self._get_bridge()
            surface = await render(
                root,
                options.viewport(),
                bridge,
                background_color=options.background_color,
                settings=self.settings,
            )
            image = surface.to_pil()
            png_bytes = self._encode(image)

            if options.optimize_png or options.transparent_background or options.png_quality:
                png_bytes = self._optimize_png(png_bytes, options)

            result = PNGResult(
                png_data=png_bytes,
                base64_data=base64.b64encode(png_bytes).decode("utf-8"),
                width=image.width,
                height=image.height,
                file_size=len(png_bytes),
                metadata={
                    "generator": "compositor",
                    "scale": options.scale,
                    "optimization": options.optimize_png,
                    "render_time": round(time.time() - start_time, 4),
                },
            )

            self.logger.info(
                "PNG generation completed",
                file_size=result.file_size,
                optimized=options.optimize_png,
            )
            return result

        except SurfaceError as e:
            self.logger.error("Surface error", error=str(e))
            raise PNGGenerationError(f"PNG generation failed: {e}") from e
        except PNGGenerationError:
            raise
        except Exception as e:
            error_msg = f"PNG generation failed: {e}"
            self.logger.error("PNG generation error", error=error_msg)
            raise PNGGenerationError(error_msg) from e

    def _encode(self, image: Image.Image) -> bytes:
        output = io.BytesIO()
        image.save(output, format="PNG", compress_level=self.settings.png_compress_level)
        return output.getvalue()

    def _optimize_png(self, png_bytes: bytes, options: RenderOptions) -> bytes:
        """
        Optimize PNG image using PIL.

        Args:
            png_bytes: Original PNG bytes
            options: Rendering options

        Returns:
            Optimized PNG bytes, or the original bytes if optimization fails
        """
        try:
            image = Image.open(io.BytesIO(png_bytes))
            if image.mode != "RGBA":
                image = image.convert("RGBA")

            if options.transparent_background:
                pixels = np.array(image)
                near_white = (pixels[..., :3] > NEAR_WHITE).all(axis=-1)
                pixels[near_white] = (255, 255, 255, 0)
                image = Image.fromarray(pixels, "RGBA")

            if options.png_quality and options.png_quality < 100:
                colors = max(2, min(256, int(256 * options.png_quality / 100)))
                image = image.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)

            output = io.BytesIO()
            image.save(
                output,
                format="PNG",
                optimize=options.optimize_png,
                compress_level=9 if options.optimize_png else self.settings.png_compress_level,
            )
            optimized_bytes = output.getvalue()

            reduction = (
                (1 - len(optimized_bytes) / len(png_bytes)) * 100 if len(png_bytes) > 0 else 0
            )
            self.logger.debug(
                "PNG optimization completed",
                original_size=len(png_bytes),
                optimized_size=len(optimized_bytes),
                reduction_percent=round(reduction, 2),
            )
            return optimized_bytes

        except (OSError, ValueError) as e:
            self.logger.warning("PNG optimization failed, using original", error=str(e))
            return png_bytes


class PNGGeneratorFactory:
    """Factory for creating PNG generators."""

    _generators: Dict[str, Type[PNGGenerator]] = {
        "compositor": PNGGenerator,
    }

    @classmethod
    def create_generator(
        cls,
        generator_type: str = "compositor",
        bridge: Optional[ResourceBridge] = None,
        settings: Optional[Settings] = None,
    ) -> PNGGenerator:
        """
        Create PNG generator instance.

        Unknown generator types fall back to the compositor generator.
        """
        if generator_type not in cls._generators:
            generator_type = "compositor"
        return cls._generators[generator_type](bridge, settings)


async def generate_png_from_tree(
    root: ElementNode, options: RenderOptions, bridge: Optional[ResourceBridge] = None
) -> PNGResult:
    """
    Render an element tree to PNG with a short-lived generator.

    Args:
        root: Root element of the tree
        options: Rendering options
        bridge: Resource bridge; a file/HTTP bridge is created when omitted

    Returns:
        PNGResult containing PNG data and metadata
    """
    generator = PNGGeneratorFactory.create_generator(bridge=bridge)
    try:
        return await generator.generate_png(root, options)
    finally:
        await generator.close()
