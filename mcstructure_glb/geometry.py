"""Shared unit-cube geometry and the canonical face order.

``FACES`` is the slot order of ``ResolvedFaceMaterials`` and the order of the
face groups in ``UnitCube``; slot ``k`` of a material set is drawn on group
``k`` of the cube. Minecraft axes: +X east, +Y up, +Z south.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

FACES: tuple[str, ...] = ("east", "west", "up", "down", "north", "south")

FACE_NORMALS: dict[str, tuple[int, int, int]] = {
    "east": (1, 0, 0),
    "west": (-1, 0, 0),
    "up": (0, 1, 0),
    "down": (0, -1, 0),
    "north": (0, 0, -1),
    "south": (0, 0, 1),
}

# (u, v) tangents per face, with u x v == normal so (0, 1, 2) winds outward.
_FACE_TANGENTS: dict[str, tuple[tuple[int, int, int], tuple[int, int, int]]] = {
    "east": ((0, 0, -1), (0, 1, 0)),
    "west": ((0, 0, 1), (0, 1, 0)),
    "up": ((1, 0, 0), (0, 0, -1)),
    "down": ((1, 0, 0), (0, 0, 1)),
    "north": ((-1, 0, 0), (0, 1, 0)),
    "south": ((1, 0, 0), (0, 1, 0)),
}

# glTF UV origin is top-left; corners go bottom-left, bottom-right, top-right, top-left.
_CORNERS = ((-1, -1), (1, -1), (1, 1), (-1, 1))
_CORNER_UVS = ((0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0))


@dataclass(frozen=True, eq=False)
class UnitCube:
    """A 1x1x1 cube centred on the origin, four vertices per face."""

    positions: np.ndarray  # (24, 3) float32
    normals: np.ndarray  # (24, 3) float32
    uvs: np.ndarray  # (24, 2) float32
    face_indices: tuple[np.ndarray, ...]  # one (6,) uint16 array per face, in FACES order

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])


def unit_cube(size: float = 1.0) -> UnitCube:
    half = size / 2.0
    positions: list[np.ndarray] = []
    normals: list[tuple[int, int, int]] = []
    uvs: list[tuple[float, float]] = []
    face_indices: list[np.ndarray] = []

    for k, face in enumerate(FACES):
        n = np.array(FACE_NORMALS[face], dtype=np.float32)
        u, v = (np.array(t, dtype=np.float32) for t in _FACE_TANGENTS[face])
        for (su, sv), uv in zip(_CORNERS, _CORNER_UVS):
            positions.append((n + su * u + sv * v) * half)
            normals.append(FACE_NORMALS[face])
            uvs.append(uv)
        base = 4 * k
        face_indices.append(np.array([base, base + 1, base + 2, base, base + 2, base + 3], dtype=np.uint16))

    return UnitCube(
        positions=np.asarray(positions, dtype=np.float32),
        normals=np.asarray(normals, dtype=np.float32),
        uvs=np.asarray(uvs, dtype=np.float32),
        face_indices=tuple(face_indices),
    )
