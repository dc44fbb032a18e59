import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .geometry import PointBox, map_pixel_box
from .stamping import StampingError, burn_signature, page_point_sizes

logger = logging.getLogger(__name__)


def _floats(value: str, count: int, sep: str = ",") -> List[float]:
    parts = value.split(sep)
    if len(parts) != count:
        raise argparse.ArgumentTypeError(f"expected {count} values separated by '{sep}', got {value!r}")
    try:
        return [float(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number in {value!r}")


def point_box_arg(value: str) -> PointBox:
    x, y, w, h = _floats(value, 4)
    return PointBox(x=x, y=y, width=w, height=h)


def pixel_box_arg(value: str) -> dict:
    left, top, w, h = _floats(value, 4)
    return {"left": left, "top": top, "width": w, "height": h}


def rendered_size_arg(value: str) -> dict:
    w, h = _floats(value.lower(), 2, sep="x")
    return {"width": w, "height": h}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Burn a signature image into a PDF without the server")
    parser.add_argument("pdf", type=Path, help="PDF to sign")
    parser.add_argument("signature", type=Path, help="PNG or JPEG signature image")
    parser.add_argument("-o", "--output", type=Path, required=True, help="where to write the signed PDF")
    parser.add_argument("--page", type=int, action="append", default=[], help="0-based page index, once per box")
    parser.add_argument("--box", type=point_box_arg, action="append", default=[], help="x,y,width,height in PDF points")
    parser.add_argument("--pixel-box", type=pixel_box_arg, action="append", default=[],
                        help="left,top,width,height in pixels of the rendered page")
    parser.add_argument("--rendered", type=rendered_size_arg,
                        help="WIDTHxHEIGHT of the rendered page the pixel boxes were drawn on")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def resolve_placements(args, page_sizes: List[Tuple[float, float]]) -> List[Tuple[int, PointBox]]:
    boxes: List[Tuple[str, object]] = [("points", b) for b in args.box]
    if args.pixel_box:
        if not args.rendered:
            raise ValueError("--pixel-box needs --rendered")
        boxes += [("pixels", b) for b in args.pixel_box]
    if not boxes:
        raise ValueError("give at least one --box or --pixel-box")

    pages = args.page or [0]
    if len(pages) == 1:
        pages = pages * len(boxes)
    if len(pages) != len(boxes):
        raise ValueError("give one --page per box, or a single --page for all boxes")

    placements = []
    for page_index, (kind, box) in zip(pages, boxes):
        if kind == "pixels":
            if 0 <= page_index < len(page_sizes):
                width, height = page_sizes[page_index]
            else:
                width, height = 1.0, 1.0
            box = map_pixel_box(box, args.rendered, {"width": width, "height": height}).point_box
            logger.debug("page %s pixel box mapped to %s", page_index, box)
        placements.append((page_index, box))
    return placements


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        pdf_bytes = args.pdf.read_bytes()
        image_bytes = args.signature.read_bytes()
        placements = resolve_placements(args, page_point_sizes(pdf_bytes))
        result = burn_signature(pdf_bytes, image_bytes, placements)
    except (OSError, ValueError, StampingError) as exc:
        # InvalidGeometry is a ValueError
        logger.error("signing failed: %s", exc)
        return 1
    if not result.applied:
        logger.error("no placement landed on an existing page (skipped %s)", result.skipped)
        return 1
    args.output.write_bytes(result.pdf_bytes)
    for applied in result.applied:
        logger.info("page %s: drew %.2fx%.2f at (%.2f, %.2f)", applied.page_index,
                    applied.rect.width, applied.rect.height, applied.rect.x, applied.rect.y)
    print(f"before: {result.before_hash}")
    print(f"after:  {result.after_hash}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
