from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2

from .config import DetectorConfig, load_detector_config
from .errors import DetectionError
from .formatting import detections_to_json, format_detections
from .image_io import read_image_bytes
from .runtime import load_detector
from .visualize import draw_detections


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yolo-detect",
        description="Detect objects in one image with a YOLOv8 ONNX model.",
    )
    parser.add_argument("image", help="Path to the input image.")
    parser.add_argument("--model", required=True, help="Path to the .onnx model.")
    parser.add_argument("--config", default=None, help="Detector config JSON (schema_version 1).")
    parser.add_argument("--conf", type=float, default=None, help="Override confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="Override NMS IoU threshold.")
    parser.add_argument("--providers", nargs="+", default=None, help="ONNX Runtime execution providers.")
    parser.add_argument("--save-vis", default=None, help="Write an annotated copy of the image here.")
    parser.add_argument("--json", action="store_true", help="Print detections as JSON.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return parser


def _resolve_config(args: argparse.Namespace) -> DetectorConfig:
    config = load_detector_config(Path(args.config)) if args.config else DetectorConfig()
    overrides = {}
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    return dataclasses.replace(config, **overrides) if overrides else config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = _resolve_config(args)
        image_bytes = read_image_bytes(args.image)
        detector = load_detector(args.model, config, root=".", providers=args.providers)
        detections = detector(image_bytes)
    except (DetectionError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(detections_to_json(detections) if args.json else format_detections(detections))

    if args.save_vis:
        image = cv2.imread(args.image)
        if image is None:
            print(f"error: could not read {args.image} for visualisation", file=sys.stderr)
            return 1
        try:
            written = cv2.imwrite(args.save_vis, draw_detections(image, detections))
        except cv2.error as exc:
            print(f"error: could not write {args.save_vis}: {exc}", file=sys.stderr)
            return 1
        if not written:
            print(f"error: could not write {args.save_vis}", file=sys.stderr)
            return 1
        print(f"Wrote {args.save_vis}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
