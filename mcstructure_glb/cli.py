"""Convert a Bedrock .mcstructure file to .glb for Blender.

Usage:
  python -m mcstructure_glb INPUT.mcstructure OUTPUT.glb [--assets DIR]
  python -m mcstructure_glb --self-test OUTPUT.glb

Textures and block models are looked up under the assets directory
(``models/block/*.json``, ``textures/block/*.png``); anything missing is
rendered with a flat fallback tint and reported as a warning.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import Settings
from .convert import convert_bytes, convert_file
from .errors import ConversionError
from .export import write_atomic
from .nbt import dump_nbt

LOG = logging.getLogger("mcstructure_glb")


def self_test_structure() -> bytes:
    """A 2x1x1 structure: air at x=0, stone at x=1."""
    return dump_nbt(
        {
            "format_version": 1,
            "size": [2, 1, 1],
            "structure": {
                "block_indices": [[0, 1], [-1, -1]],
                "entities": [],
                "palette": {
                    "default": {
                        "block_palette": [
                            {"name": "minecraft:air", "states": {}, "version": 18090528},
                            {"name": "minecraft:stone", "states": {}, "version": 18090528},
                        ],
                        "block_position_data": {},
                    }
                },
            },
            "structure_world_origin": [0, 0, 0],
        }
    )


def _self_test(output: Path, settings: Settings) -> int:
    result = convert_bytes(self_test_structure(), settings)
    if result.placed != 1 or result.skipped != 1:
        LOG.error("self-test: expected 1 placed / 1 skipped, got %d / %d", result.placed, result.skipped)
        return 1
    if result.glb[:4] != b"glTF":
        LOG.error("self-test: output is not a binary glTF")
        return 1
    write_atomic(output, result.glb)
    LOG.info("self-test: wrote %s", output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mcstructure-glb", description="Convert .mcstructure files to .glb for Blender")
    ap.add_argument("input", nargs="?", help="Input .mcstructure file")
    ap.add_argument("output", help="Output .glb file")
    ap.add_argument("--assets", type=Path, help="Assets directory with models/ and textures/ (default: ./assets)")
    ap.add_argument("--workers", type=int, help="Threads used to resolve block materials (default: 1)")
    ap.add_argument(
        "--lenient",
        action="store_true",
        default=None,
        help="Tolerate zero dimensions or a block_indices length that does not match the size",
    )
    ap.add_argument("--air-name", help="Block name treated as empty (default: minecraft:air)")
    ap.add_argument("--max-chain-depth", type=int, help="Limit for model parent / texture variable chains")
    ap.add_argument("--log-level", help="Logging level (default: INFO)")
    ap.add_argument("--self-test", action="store_true", help="Convert a tiny built-in structure to OUTPUT")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        settings = Settings.from_env().with_overrides(
            assets_dir=args.assets,
            workers=args.workers,
            lenient=args.lenient,
            air_name=args.air_name,
            max_chain_depth=args.max_chain_depth,
            log_level=args.log_level.upper() if args.log_level else None,
        )
    except ValueError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.self_test:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        try:
            return _self_test(out, settings)
        except ConversionError as exc:
            LOG.error("self-test failed: %s", exc)
            return 1

    if not args.input:
        print("Missing input .mcstructure (or use --self-test)", file=sys.stderr)
        return 2

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Missing input file: {input_path}", file=sys.stderr)
        return 2

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        result = convert_file(input_path, output_path, settings)
    except ConversionError as exc:
        LOG.error("Error processing %s: %s", input_path, exc)
        return 1
    except OSError as exc:
        LOG.error("Cannot read %s: %s", input_path, exc)
        return 1

    LOG.info(
        "Done: %d blocks placed, %d empty cells, %d block types, %d warnings",
        result.placed,
        result.skipped,
        result.block_types,
        len(result.warnings),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
