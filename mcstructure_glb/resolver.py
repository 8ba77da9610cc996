"""Block name -> six face textures, following the model parent chain.

A block model may leave its geometry to a parent (``"parent": "block/cube_all"``)
and name textures through variables that point at other variables
(``"side": "#all"``). Declarations are kept per chain level, child first; a
variable takes the first declaration that ends in a loadable texture, so a
parent only fills in what the child leaves unresolved.

Every walk is iterative and bounded by ``max_chain_depth``; a cycle or an
overlong chain degrades to the fallback tint instead of failing the run.
"""

from __future__ import annotations

import logging
from typing import Optional

from .assets import AssetStore, Texture, strip_namespace
from .errors import ModelFormatError, WarningKind, WarningLog
from .geometry import FACES
from .models import BlockModelDefinition
from .scene import ResolvedFaceMaterials

LOG = logging.getLogger(__name__)

DEFAULT_MAX_CHAIN_DEPTH = 32

Declarations = dict[str, list[str]]


class _Resolution:
    """Scratch state for resolving one block; thrown away afterwards."""

    def __init__(self, resolver: "ModelResolver", block_name: str) -> None:
        self.resolver = resolver
        self.block_name = block_name
        self.declarations: Declarations = {}
        self.textures: dict[str, Optional[Texture]] = {}
        self.variables: dict[str, Optional[Texture]] = {}

    def warn(self, kind: WarningKind, detail: str) -> None:
        self.resolver.warnings.add(kind, self.block_name, detail)

    def declare(self, model: BlockModelDefinition) -> None:
        for var, ref in model.textures.items():
            self.declarations.setdefault(var, []).append(ref)

    def load(self, ref: str) -> Optional[Texture]:
        store = self.resolver.store
        key = str(store.texture_path(ref))
        if key not in self.textures:
            texture = store.load_texture(ref)
            if texture is None:
                self.warn("missing_texture", f"{ref} ({store.texture_path(ref)})")
            self.textures[key] = texture
        return self.textures[key]

    def variable(self, var: str) -> Optional[Texture]:
        if var not in self.variables:
            self.variables[var] = self._chase(var)
        return self.variables[var]

    def _chase(self, var: str) -> Optional[Texture]:
        limit = self.resolver.max_chain_depth
        # Depth-first over declarations, child level first.
        stack: list[tuple[str, tuple[str, ...]]] = [(f"#{var}", ())]
        expanded: set[str] = set()
        steps = 0
        while stack:
            ref, path = stack.pop()
            if not ref.startswith("#"):
                texture = self.load(ref)
                if texture is not None:
                    return texture
                continue
            name = ref[1:]
            if name in path:
                self.warn("chain_overflow", f"#{var}: variable cycle through #{name}")
                continue
            if name in expanded:
                continue
            steps += 1
            if steps > limit:
                self.warn("chain_overflow", f"#{var}: more than {limit} indirections")
                return None
            expanded.add(name)
            decls = self.declarations.get(name)
            if not decls:
                self.warn("unresolved_variable", f"#{var}: #{name} is not declared")
                continue
            stack.extend((d, path + (name,)) for d in reversed(decls))
        return None


class ModelResolver:
    """Stateless across calls; memoisation belongs to ``MaterialCache``."""

    def __init__(
        self,
        store: AssetStore,
        warnings: Optional[WarningLog] = None,
        *,
        max_chain_depth: int = DEFAULT_MAX_CHAIN_DEPTH,
    ) -> None:
        self.store = store
        self.warnings = warnings if warnings is not None else WarningLog()
        self.max_chain_depth = max_chain_depth

    def resolve(self, block_name: str) -> ResolvedFaceMaterials:
        try:
            return self._resolve(block_name)
        except ModelFormatError as exc:
            self.warnings.add("malformed_model", block_name, str(exc))
            return ResolvedFaceMaterials.fallback(block_name)

    def _resolve(self, block_name: str) -> ResolvedFaceMaterials:
        key = strip_namespace(block_name)
        model = self.store.load_model(key)
        if model is None:
            self.warnings.add("missing_model", block_name, str(self.store.model_path(key)))
            return ResolvedFaceMaterials.fallback(block_name)

        res = _Resolution(self, block_name)
        face_map = self._walk_chain(res, key, model)

        # Resolve every declared variable so each missing file gets reported.
        for var in list(res.declarations):
            res.variable(var)

        if face_map is None:
            LOG.debug("No elements in model chain for %s", block_name)
            return ResolvedFaceMaterials.fallback(block_name)

        slots: list[Optional[Texture]] = []
        for face in FACES:
            ref = face_map.get(face)
            if ref is None:
                slots.append(None)
            elif ref.startswith("#"):
                slots.append(res.variable(ref[1:]))
            else:
                slots.append(res.load(ref))
        return ResolvedFaceMaterials(block_name=block_name, slots=tuple(slots))

    def _walk_chain(self, res: _Resolution, key: str, model: BlockModelDefinition) -> Optional[dict[str, str]]:
        visited = {self.store.model_path(key)}
        current = model
        steps = 0
        while True:
            res.declare(current)
            if current.face_map is not None:
                return current.face_map
            if not current.parent:
                return None
            steps += 1
            parent_path = self.store.model_path(current.parent)
            if parent_path in visited:
                res.warn("chain_overflow", f"parent cycle at {current.parent}")
                return None
            if steps > self.max_chain_depth:
                res.warn("chain_overflow", f"more than {self.max_chain_depth} parent models")
                return None
            visited.add(parent_path)
            parent = self.store.load_model(current.parent)
            if parent is None:
                res.warn("missing_parent", f"{current.parent} ({parent_path})")
                return None
            current = parent
