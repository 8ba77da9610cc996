"""Model/texture lookup over an unpacked resource-pack style directory.

Layout (all names namespace-stripped):

    <root>/models/block/<block>.json
    <root>/models/<parent path>.json      e.g. "minecraft:block/cube_all"
    <root>/textures/block/<texture>.png   e.g. "minecraft:block/stone"

Both lookups may miss; a miss is reported as ``None``, never raised.
"""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image
from pydantic import ValidationError

from .errors import ModelFormatError
from .models import BlockModelDefinition

LOG = logging.getLogger(__name__)


def strip_namespace(name: str) -> str:
    return name.split(":", 1)[-1]


def _asset_key(ref: str) -> str:
    key = strip_namespace(ref).strip("/")
    if "/" not in key:
        key = f"block/{key}"
    return key


@dataclass(frozen=True, eq=False)
class Texture:
    name: str
    width: int
    height: int
    png: bytes
    has_alpha: bool


def decode_texture(name: str, path: Path) -> Texture:
    with Image.open(path) as src:
        img = src.convert("RGBA")
    w, h = img.size
    # Animated textures are vertical strips of square frames; keep frame 0.
    if w and h > w and h % w == 0:
        img = img.crop((0, 0, w, w))
        h = w
    lo, _hi = img.getchannel("A").getextrema()
    out = io.BytesIO()
    img.save(out, format="PNG")
    return Texture(name=name, width=w, height=h, png=out.getvalue(), has_alpha=lo < 255)


class AssetStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def model_path(self, ref: str) -> Path:
        return self.root / "models" / f"{_asset_key(ref)}.json"

    def texture_path(self, ref: str) -> Path:
        return self.root / "textures" / f"{_asset_key(ref)}.png"

    def load_model(self, ref: str) -> Optional[BlockModelDefinition]:
        path = self.model_path(ref)
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ModelFormatError(f"{path}: {exc}") from exc
        try:
            return BlockModelDefinition.model_validate(data)
        except ValidationError as exc:
            raise ModelFormatError(f"{path}: {exc.error_count()} validation error(s): {exc}") from exc

    def load_texture(self, ref: str) -> Optional[Texture]:
        path = self.texture_path(ref)
        if not path.is_file():
            return None
        try:
            return decode_texture(_asset_key(ref), path)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            LOG.warning("Cannot decode texture %s: %s", path, exc)
            return None
