"""
Command-line front-end.

Usage: python -m modelconv <input.fbx|image> [-o DEST] [options]
"""

import argparse
import logging
import queue
import sys
from pathlib import Path

from .config import ConversionOptions
from .errors import ConversionError
from .layout import LAYOUT_POLICIES
from .loaders import LOADERS
from .pipeline import ConversionWorker

logger = logging.getLogger("modelconv")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="modelconv",
        description="Convert a 3D scene into .msh/.ani/.mat files")
    parser.add_argument("source", help="Scene file (or an image to convert to a texture)")
    parser.add_argument("-o", "--output", default=".",
                        help="Destination directory (default: current directory)")
    parser.add_argument("--backend", choices=sorted(LOADERS), default="assimp",
                        help="Scene import library")
    parser.add_argument("--no-materials", action="store_true",
                        help="Do not write material descriptors or textures")
    parser.add_argument("--convert-textures", action="store_true",
                        help="Convert diffuse textures instead of copying them")
    parser.add_argument("--texture-format", default="dds",
                        help="Target texture extension when converting (default: dds)")
    parser.add_argument("--no-animations", action="store_true",
                        help="Do not write animation clips")
    parser.add_argument("--first-clip-only", action="store_true",
                        help="Write only the first animation clip")
    parser.add_argument("--layout-policy", choices=sorted(LAYOUT_POLICIES), default="tree",
                        help="How to choose between rigid and skinned vertices")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    options = ConversionOptions(
        destination=Path(args.output),
        import_materials=not args.no_materials,
        convert_textures=args.convert_textures,
        texture_format=args.texture_format,
        import_animations=not args.no_animations,
        first_clip_only=args.first_clip_only,
        layout_policy=args.layout_policy,
    )

    with ConversionWorker() as worker:
        future = worker.submit(args.source, options, backend=args.backend)
        while not (future.done() and worker.events.empty()):
            try:
                event = worker.events.get(timeout=0.1)
            except queue.Empty:
                continue
            logger.info("[%3d%%] %s %s", round(event.fraction * 100),
                        event.milestone.value, event.detail)
        try:
            result = future.result()
        except ConversionError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    for failure in result.failures:
        print(f"FAILED {failure.artifact}: {failure.error}", file=sys.stderr)
    print("Done." if result.ok else "Failed.")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
