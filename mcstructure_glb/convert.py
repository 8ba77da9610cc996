from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .assembler import assemble
from .assets import AssetStore
from .cache import MaterialCache
from .config import Settings
from .errors import FormatError, ResolutionWarning, WarningLog
from .export import encode_glb, write_atomic
from .nbt import NBTError, load_nbt
from .resolver import ModelResolver
from .structure import StructureDimensions, check_volume, decode_structure

LOG = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    dimensions: StructureDimensions
    placed: int
    skipped: int
    glb: bytes = field(repr=False)
    warnings: list[ResolutionWarning] = field(default_factory=list)
    block_types: int = 0


def convert_bytes(raw: bytes, settings: Settings) -> ConversionResult:
    """Run the whole pipeline in memory; nothing touches the output path."""
    try:
        root = load_nbt(raw)
    except NBTError as exc:
        raise FormatError(f"Invalid .mcstructure file: {exc}") from exc

    decoded = decode_structure(root)
    dims = decoded.dimensions
    LOG.info("Structure size: %d x %d x %d", dims.width, dims.height, dims.depth)
    LOG.info("Extracted palette list: %d blocks", len(decoded.palette))
    check_volume(dims, decoded.grid, strict=not settings.lenient)

    # Cache and warnings live for this run only.
    warnings = WarningLog()
    resolver = ModelResolver(AssetStore(settings.assets_dir), warnings, max_chain_depth=settings.max_chain_depth)
    cache = MaterialCache(resolver)

    assembled = assemble(
        dims,
        decoded.grid,
        decoded.palette,
        cache,
        air_name=settings.air_name,
        workers=settings.workers,
    )
    glb = encode_glb(assembled.scene)

    if len(warnings):
        LOG.info(
            "Resolution fallbacks: %s",
            ", ".join(f"{kind}={count}" for kind, count in sorted(warnings.counts().items())),
        )
    return ConversionResult(
        dimensions=dims,
        placed=assembled.placed,
        skipped=assembled.skipped,
        glb=glb,
        warnings=warnings.items(),
        block_types=len(cache),
    )


def convert_file(input_path: Path, output_path: Path, settings: Settings) -> ConversionResult:
    LOG.info("Reading file: %s", input_path)
    result = convert_bytes(Path(input_path).read_bytes(), settings)
    write_atomic(Path(output_path), result.glb)
    LOG.info("Exported to %s (%d bytes)", output_path, len(result.glb))
    return result
