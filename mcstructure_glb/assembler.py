from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

from .cache import MaterialCache
from .scene import SceneGraph
from .structure import AIR_BLOCK, BlockPaletteEntry, StructureDimensions

LOG = logging.getLogger(__name__)


@dataclass
class AssemblyResult:
    scene: SceneGraph
    placed: int
    skipped: int


def lattice_position(i: int, dims: StructureDimensions) -> tuple[int, int, int]:
    """Flat index -> (x, y, z); storage is Z fastest, then Y, X slowest."""
    x = (i // (dims.depth * dims.height)) % dims.width
    y = (i // dims.depth) % dims.height
    z = i % dims.depth
    return x, y, z


def find_air_index(palette: Sequence[BlockPaletteEntry], air_name: str = AIR_BLOCK) -> Optional[int]:
    for idx, entry in enumerate(palette):
        if entry.name == air_name:
            return idx
    return None


def _palette_entry(
    grid: Sequence[int], i: int, palette: Sequence[BlockPaletteEntry], air_index: Optional[int]
) -> Optional[BlockPaletteEntry]:
    if i >= len(grid):
        return None
    idx = grid[i]
    if idx == -1 or idx == air_index or idx < 0 or idx >= len(palette):
        return None
    entry = palette[idx]
    if not entry.name:
        return None
    return entry


def _prefetch(names: set[str], cache: MaterialCache, workers: int) -> None:
    LOG.debug("Resolving %d block types with %d workers", len(names), workers)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mcstructure-resolve") as pool:
        # list() re-raises any worker failure here.
        list(pool.map(cache.get_or_resolve, sorted(names)))


def assemble(
    dims: StructureDimensions,
    grid: Sequence[int],
    palette: Sequence[BlockPaletteEntry],
    cache: MaterialCache,
    *,
    air_name: str = AIR_BLOCK,
    workers: int = 1,
) -> AssemblyResult:
    """Emit one cube instance per non-empty voxel, in flat index order.

    With ``workers > 1`` the distinct block names are resolved concurrently
    first; placement itself stays sequential so instance order is stable.
    """
    air_index = find_air_index(palette, air_name)
    volume = dims.volume

    if workers > 1:
        names = set()
        for i in range(min(volume, len(grid))):
            entry = _palette_entry(grid, i, palette, air_index)
            if entry is not None:
                names.add(entry.name)
        _prefetch(names, cache, workers)

    scene = SceneGraph()
    placed = 0
    skipped = 0
    for i in range(volume):
        entry = _palette_entry(grid, i, palette, air_index)
        if entry is None:
            skipped += 1
            continue
        if entry.name == air_name:
            LOG.warning("Air detected while adding blocks (palette entry %r)", entry.name)
        scene.add(lattice_position(i, dims), cache.get_or_resolve(entry.name))
        placed += 1

    LOG.info("Added %d blocks to scene (%d empty cells skipped)", placed, skipped)
    return AssemblyResult(scene=scene, placed=placed, skipped=skipped)
