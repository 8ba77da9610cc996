from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import FormatError
from .nbt import ARRAY_TAGS, INTEGRAL_TAGS, NBTError, TAG_COMPOUND, Tag, tag_name

LOG = logging.getLogger(__name__)

AIR_BLOCK = "minecraft:air"


@dataclass(frozen=True)
class StructureDimensions:
    width: int
    height: int
    depth: int

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth

    def as_tuple(self) -> tuple[int, int, int]:
        return self.width, self.height, self.depth


@dataclass(frozen=True)
class BlockPaletteEntry:
    name: str
    states: dict[str, Any] = field(default_factory=dict)
    version: Optional[int] = None


@dataclass(frozen=True)
class DecodedStructure:
    dimensions: StructureDimensions
    grid: list[int]
    palette: list[BlockPaletteEntry]


def _field(node: Tag, path: str) -> Tag:
    cur = node
    for part in path.split("."):
        try:
            cur = cur.child(part)
        except NBTError as exc:
            raise FormatError(f"{path}: {exc}") from exc
    return cur


def _decode_size(root: Tag) -> StructureDimensions:
    size = _field(root, "size")
    try:
        if size.kind in ARRAY_TAGS:
            values = size.as_ints()
        else:
            values = [item.as_number() for item in size.as_list()]
    except NBTError as exc:
        raise FormatError(f"Invalid size data: {exc}") from exc
    if len(values) != 3:
        raise FormatError(f"Invalid size data: expected 3 values, got {len(values)}")
    out: list[int] = []
    for axis, v in zip(("width", "height", "depth"), values):
        if isinstance(v, float):
            if not math.isfinite(v) or not v.is_integer():
                raise FormatError(f"Invalid size data: {axis}={v!r} is not a finite integer")
            v = int(v)
        out.append(v)
    return StructureDimensions(width=out[0], height=out[1], depth=out[2])


def _decode_grid(structure: Tag) -> list[int]:
    indices = _field(structure, "block_indices")
    try:
        layers = indices.as_list()
    except NBTError as exc:
        raise FormatError(f"Missing or malformed block_indices: {exc}") from exc
    if not layers:
        raise FormatError("Missing or malformed block_indices: no layers")
    # Layer 1 (waterlogging) is not used.
    try:
        return layers[0].as_ints()
    except NBTError as exc:
        raise FormatError(f"Missing or malformed block_indices layer 0: {exc}") from exc


def _decode_palette(structure: Tag) -> list[BlockPaletteEntry]:
    block_palette = _field(structure, "palette.default.block_palette")
    try:
        items = block_palette.as_list()
    except NBTError as exc:
        raise FormatError(f"Invalid or missing block_palette: {exc}") from exc

    out: list[BlockPaletteEntry] = []
    for i, item in enumerate(items):
        if item.kind != TAG_COMPOUND:
            raise FormatError(f"block_palette[{i}]: expected compound, got {tag_name(item.kind)}")
        try:
            name = item.child("name").as_string()
        except NBTError as exc:
            raise FormatError(f"block_palette[{i}]: {exc}") from exc

        states_tag = item.get("states")
        states = states_tag.to_python() if states_tag is not None and states_tag.kind == TAG_COMPOUND else {}
        version_tag = item.get("version")
        version = version_tag.value if version_tag is not None and version_tag.kind in INTEGRAL_TAGS else None
        out.append(BlockPaletteEntry(name=name, states=states, version=version))
    return out


def decode_structure(root: Tag) -> DecodedStructure:
    """Pull dimensions, the first block layer and the palette out of a decoded .mcstructure.

    Only the shape of the three fields is validated here; see ``check_volume``
    for the grid/volume consistency check.
    """
    if root.kind != TAG_COMPOUND:
        raise FormatError(f"root must be a compound, got {tag_name(root.kind)}")
    dims = _decode_size(root)
    structure = _field(root, "structure")
    grid = _decode_grid(structure)
    palette = _decode_palette(structure)
    return DecodedStructure(dimensions=dims, grid=grid, palette=palette)


def check_volume(dims: StructureDimensions, grid: list[int], *, strict: bool = True) -> None:
    """Reject dimensions that cannot describe ``grid``.

    Negative dimensions are always fatal. Zero dimensions and a grid whose
    length differs from the volume are fatal when ``strict``; otherwise they
    are logged and the assembler treats cells past the grid as empty.
    """
    axes = list(zip(("width", "height", "depth"), dims.as_tuple()))
    negative = [axis for axis, v in axes if v < 0]
    if negative:
        raise FormatError(f"negative structure dimension(s): {', '.join(negative)} in {dims.as_tuple()}")

    problems = []
    zero = [axis for axis, v in axes if v == 0]
    if zero:
        problems.append(f"zero structure dimension(s): {', '.join(zero)} in {dims.as_tuple()}")
    if dims.volume != len(grid):
        problems.append(f"block_indices length mismatch (got {len(grid)}, expected {dims.volume} for {dims.as_tuple()})")
    if not problems:
        return
    if strict:
        raise FormatError("; ".join(problems))
    for problem in problems:
        LOG.warning("Tolerating %s", problem)
