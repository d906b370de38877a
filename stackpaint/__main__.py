"""
Command Line Entry Point
========================

Render a serialized element tree to a PNG file::

    python -m stackpaint tree.json -o out.png --scale 2 --background "#ffffff"
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from stackpaint.config.logging import get_logger, setup_logging
from stackpaint.config.settings import get_settings
from stackpaint.core.rendering.png_generator import PNGGenerationError, PNGGenerator
from stackpaint.core.resources import ImageResourceBridge
from stackpaint.core.tree.loader import load_tree
from stackpaint.models.schemas import Color, RenderOptions

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="stackpaint", description="Render a styled element tree to PNG"
    )
    parser.add_argument("tree", help="Element tree file (JSON or YAML)")
    parser.add_argument("-o", "--output", help="Output PNG path (default: TREE with .png suffix)")
    parser.add_argument(
        "--scale", type=float, default=settings.default_scale, help="Device pixel ratio"
    )
    parser.add_argument("--background", help="Background colour, e.g. #ffffff")
    parser.add_argument("--format", choices=["json", "yaml"], help="Tree format (default: sniffed)")
    parser.add_argument("--width", type=int, help="Viewport width (default: root width)")
    parser.add_argument("--height", type=int, help="Viewport height (default: root height)")
    parser.add_argument("--optimize", action="store_true", help="Optimize PNG file size")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    tree_path = Path(args.tree)
    if not tree_path.exists():
        print(f"Tree file does not exist: {tree_path}", file=sys.stderr)
        return 1

    result = await load_tree(tree_path.read_text(encoding="utf-8"), args.format)
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if not result.success or result.tree is None:
        for error in result.errors:
            print(f"error: {error}", file=sys.stderr)
        return 1

    root = result.tree
    try:
        options = RenderOptions(
            x=root.bounds.left,
            y=root.bounds.top,
            width=args.width or int(root.bounds.width) or settings.default_width,
            height=args.height or int(root.bounds.height) or settings.default_height,
            scale=args.scale,
            background_color=Color.model_validate(args.background) if args.background else None,
            optimize_png=args.optimize,
        )
    except ValidationError as e:
        print(f"error: invalid render options: {e}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else tree_path.with_suffix(".png")
    async with ImageResourceBridge(base_path=tree_path.parent) as bridge:
        generator = PNGGenerator(bridge, settings)
        try:
            png = await generator.generate_png(root, options)
        except PNGGenerationError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

    output.write_bytes(png.png_data)
    logger.info("PNG written", path=str(output), file_size=png.file_size)
    print(f"{output} ({png.width}x{png.height}, {png.file_size} bytes)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the renderer CLI."""
    setup_logging()
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
