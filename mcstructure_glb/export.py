"""Scene graph -> binary glTF.

Layout of the produced file:
  - one buffer; the cube's POSITION/NORMAL/TEXCOORD_0 and its six per-face
    index arrays are written to it exactly once
  - one material per distinct texture plus one flat fallback material
  - one mesh per distinct material set (six primitives, one per face, all
    sharing the cube accessors)
  - one node per voxel instance, translated to its lattice position
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import numpy as np
import pygltflib

from .assets import Texture
from .errors import ExportError
from .geometry import FACES, UnitCube
from .scene import FALLBACK_TINT, ResolvedFaceMaterials, SceneGraph

LOG = logging.getLogger(__name__)

GENERATOR = "mcstructure-glb"


class _Blob:
    def __init__(self) -> None:
        self.data = bytearray()

    def add(self, gltf: pygltflib.GLTF2, payload: bytes, target: Optional[int] = None) -> int:
        offset = len(self.data)
        self.data.extend(payload)
        # Pad to 4-byte alignment
        while len(self.data) % 4 != 0:
            self.data.append(0)
        gltf.bufferViews.append(
            pygltflib.BufferView(buffer=0, byteOffset=offset, byteLength=len(payload), target=target)
        )
        return len(gltf.bufferViews) - 1


def _add_accessor(gltf: pygltflib.GLTF2, blob: _Blob, arr: np.ndarray, *, kind: str, target: int) -> int:
    if arr.dtype == np.uint16:
        component = pygltflib.UNSIGNED_SHORT
    else:
        component = pygltflib.FLOAT
    view = blob.add(gltf, arr.tobytes(), target=target)
    flat = arr.reshape(len(arr), -1)
    gltf.accessors.append(
        pygltflib.Accessor(
            bufferView=view,
            componentType=component,
            count=len(arr),
            type=kind,
            min=[v.item() for v in flat.min(axis=0)],
            max=[v.item() for v in flat.max(axis=0)],
        )
    )
    return len(gltf.accessors) - 1


def _write_geometry(gltf: pygltflib.GLTF2, blob: _Blob, cube: UnitCube) -> tuple[pygltflib.Attributes, list[int]]:
    attributes = pygltflib.Attributes(
        POSITION=_add_accessor(gltf, blob, cube.positions, kind=pygltflib.VEC3, target=pygltflib.ARRAY_BUFFER),
        NORMAL=_add_accessor(gltf, blob, cube.normals, kind=pygltflib.VEC3, target=pygltflib.ARRAY_BUFFER),
        TEXCOORD_0=_add_accessor(gltf, blob, cube.uvs, kind=pygltflib.VEC2, target=pygltflib.ARRAY_BUFFER),
    )
    face_accessors = [
        _add_accessor(gltf, blob, indices, kind=pygltflib.SCALAR, target=pygltflib.ELEMENT_ARRAY_BUFFER)
        for indices in cube.face_indices
    ]
    return attributes, face_accessors


class _MaterialTable:
    def __init__(self, gltf: pygltflib.GLTF2, blob: _Blob) -> None:
        self.gltf = gltf
        self.blob = blob
        self.by_texture: dict[str, int] = {}
        self.fallback: Optional[int] = None

    def _append(self, material: pygltflib.Material) -> int:
        self.gltf.materials.append(material)
        return len(self.gltf.materials) - 1

    def index_for(self, texture: Optional[Texture]) -> int:
        if texture is None:
            if self.fallback is None:
                self.fallback = self._append(
                    pygltflib.Material(
                        name="fallback",
                        pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                            baseColorFactor=list(FALLBACK_TINT), metallicFactor=0.0, roughnessFactor=1.0
                        ),
                    )
                )
            return self.fallback

        found = self.by_texture.get(texture.name)
        if found is not None:
            return found

        if not self.gltf.samplers:
            self.gltf.samplers.append(
                pygltflib.Sampler(
                    magFilter=pygltflib.NEAREST,
                    minFilter=pygltflib.NEAREST,
                    wrapS=pygltflib.REPEAT,
                    wrapT=pygltflib.REPEAT,
                )
            )
        view = self.blob.add(self.gltf, texture.png)
        self.gltf.images.append(pygltflib.Image(name=texture.name, mimeType="image/png", bufferView=view))
        self.gltf.textures.append(pygltflib.Texture(sampler=0, source=len(self.gltf.images) - 1))
        index = self._append(
            pygltflib.Material(
                name=texture.name,
                alphaMode="MASK" if texture.has_alpha else "OPAQUE",
                alphaCutoff=0.5 if texture.has_alpha else None,
                pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                    baseColorTexture=pygltflib.TextureInfo(index=len(self.gltf.textures) - 1),
                    metallicFactor=0.0,
                    roughnessFactor=1.0,
                ),
            )
        )
        self.by_texture[texture.name] = index
        return index


def build_gltf(scene: SceneGraph) -> pygltflib.GLTF2:
    gltf = pygltflib.GLTF2(
        asset=pygltflib.Asset(version="2.0", generator=GENERATOR),
        scene=0,
        scenes=[pygltflib.Scene(nodes=[])],
    )
    blob = _Blob()
    attributes, face_accessors = _write_geometry(gltf, blob, scene.geometry)
    materials = _MaterialTable(gltf, blob)

    mesh_for: dict[int, int] = {}

    def mesh_index(mats: ResolvedFaceMaterials) -> int:
        key = id(mats)
        if key not in mesh_for:
            primitives = [
                pygltflib.Primitive(
                    attributes=attributes,
                    indices=face_accessors[k],
                    material=materials.index_for(mats.slots[k]),
                )
                for k in range(len(FACES))
            ]
            gltf.meshes.append(pygltflib.Mesh(name=mats.block_name, primitives=primitives))
            mesh_for[key] = len(gltf.meshes) - 1
        return mesh_for[key]

    for instance in scene.instances:
        x, y, z = instance.position
        gltf.nodes.append(
            pygltflib.Node(
                name=instance.materials.block_name,
                mesh=mesh_index(instance.materials),
                translation=[float(x), float(y), float(z)],
            )
        )
        gltf.scenes[0].nodes.append(len(gltf.nodes) - 1)

    gltf.buffers = [pygltflib.Buffer(byteLength=len(blob.data))]
    gltf.set_binary_blob(bytes(blob.data))
    LOG.debug(
        "glTF: %d nodes, %d meshes, %d materials, %d bytes of buffer data",
        len(gltf.nodes),
        len(gltf.meshes),
        len(gltf.materials),
        len(blob.data),
    )
    return gltf


def encode_glb(scene: SceneGraph) -> bytes:
    try:
        gltf = build_gltf(scene)
        return b"".join(gltf.save_to_bytes())
    except Exception as exc:  # noqa: BLE001
        raise ExportError(f"Failed to encode glTF: {exc}") from exc


def write_atomic(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a sibling temp file; never leaves a partial file."""
    path = Path(path)
    tmp_name: Optional[str] = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
