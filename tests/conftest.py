from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Optional

import pytest
from PIL import Image

from mcstructure_glb.assets import AssetStore
from mcstructure_glb.nbt import Tag, dump_nbt, load_nbt
from mcstructure_glb.scene import ResolvedFaceMaterials


def structure_doc(
    size: list[Any],
    grid: list[int],
    names: list[str],
    *,
    second_layer: Optional[list[int]] = None,
) -> dict[str, Any]:
    layers = [grid, second_layer if second_layer is not None else [-1] * len(grid)]
    return {
        "format_version": 1,
        "size": size,
        "structure": {
            "block_indices": layers,
            "entities": [],
            "palette": {
                "default": {
                    "block_palette": [{"name": n, "states": {}, "version": 18090528} for n in names],
                    "block_position_data": {},
                }
            },
        },
        "structure_world_origin": [0, 0, 0],
    }


def structure_bytes(size: list[Any], grid: list[int], names: list[str], **kwargs: Any) -> bytes:
    return dump_nbt(structure_doc(size, grid, names, **kwargs))


def structure_root(size: list[Any], grid: list[int], names: list[str], **kwargs: Any) -> Tag:
    return load_nbt(structure_bytes(size, grid, names, **kwargs))


class AssetTree:
    """Builds a models/ + textures/ directory under tmp_path."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / "models" / "block").mkdir(parents=True, exist_ok=True)
        (root / "textures" / "block").mkdir(parents=True, exist_ok=True)

    def model(self, path: str, doc: Any) -> Path:
        p = self.root / "models" / f"{path}.json"
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(doc if isinstance(doc, str) else json.dumps(doc), encoding="utf-8")
        return p

    def texture(self, path: str, color=(128, 128, 128, 255), size=(16, 16)) -> Path:
        p = self.root / "textures" / f"{path}.png"
        p.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", size, color).save(p)
        return p

    def cube_templates(self) -> None:
        faces = {face: {"texture": f"#{face}", "cullface": face} for face in ("down", "up", "north", "south", "west", "east")}
        self.model("block/cube", {"parent": "block/block", "elements": [{"from": [0, 0, 0], "to": [16, 16, 16], "faces": faces}]})
        self.model(
            "block/cube_all",
            {
                "parent": "block/cube",
                "textures": {face: "#all" for face in ("particle", "down", "up", "north", "south", "west", "east")},
            },
        )
        self.model(
            "block/cube_column",
            {
                "parent": "block/cube",
                "textures": {
                    "particle": "#side",
                    "down": "#end",
                    "up": "#end",
                    "north": "#side",
                    "south": "#side",
                    "west": "#side",
                    "east": "#side",
                },
            },
        )


class CountingStore(AssetStore):
    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.model_loads: list[str] = []
        self.texture_loads: list[str] = []
        self._lock = threading.Lock()

    def load_model(self, ref):
        with self._lock:
            self.model_loads.append(ref)
        return super().load_model(ref)

    def load_texture(self, ref):
        with self._lock:
            self.texture_loads.append(ref)
        return super().load_texture(ref)


class FakeResolver:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def resolve(self, block_name: str) -> ResolvedFaceMaterials:
        with self._lock:
            self.calls.append(block_name)
        return ResolvedFaceMaterials.fallback(block_name)


@pytest.fixture()
def assets(tmp_path: Path) -> AssetTree:
    return AssetTree(tmp_path / "assets")


@pytest.fixture()
def fake_resolver() -> FakeResolver:
    return FakeResolver()
