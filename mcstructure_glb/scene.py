from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .assets import Texture
from .geometry import FACES, UnitCube, unit_cube

# Flat RGBA tint for faces without a texture.
FALLBACK_TINT: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)


@dataclass(frozen=True, eq=False)
class ResolvedFaceMaterials:
    """Six face slots in ``FACES`` order; ``None`` means the fallback tint.

    Compared by identity: the cache hands every voxel of a block the same object.
    """

    block_name: str
    slots: tuple[Optional[Texture], ...]

    def __post_init__(self) -> None:
        if len(self.slots) != len(FACES):
            raise ValueError(f"expected {len(FACES)} face slots, got {len(self.slots)}")

    @classmethod
    def fallback(cls, block_name: str) -> "ResolvedFaceMaterials":
        return cls(block_name=block_name, slots=(None,) * len(FACES))

    @property
    def is_fallback(self) -> bool:
        return all(slot is None for slot in self.slots)

    def texture_for(self, face: str) -> Optional[Texture]:
        return self.slots[FACES.index(face)]


@dataclass(frozen=True)
class MeshInstance:
    position: tuple[int, int, int]
    materials: ResolvedFaceMaterials


@dataclass
class SceneGraph:
    geometry: UnitCube = field(default_factory=unit_cube)
    instances: list[MeshInstance] = field(default_factory=list)

    def add(self, position: tuple[int, int, int], materials: ResolvedFaceMaterials) -> MeshInstance:
        instance = MeshInstance(position=position, materials=materials)
        self.instances.append(instance)
        return instance

    def __len__(self) -> int:
        return len(self.instances)
