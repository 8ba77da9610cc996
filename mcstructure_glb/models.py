from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelElement(BaseModel):
    model_config = ConfigDict(extra="ignore")

    faces: dict[str, str] = Field(default_factory=dict)

    @field_validator("faces", mode="before")
    @classmethod
    def normalise_faces(cls, value: Any) -> dict[str, str]:
        # Resource packs write {"texture": "#side", "cullface": ...}; the short form is "#side".
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("faces must be an object")
        out: dict[str, str] = {}
        for face, spec in value.items():
            if isinstance(spec, dict):
                spec = spec.get("texture")
            if not isinstance(spec, str):
                raise ValueError(f"face {face!r} has no texture reference")
            out[str(face).lower()] = spec
        return out


class BlockModelDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    parent: Optional[str] = None
    textures: dict[str, str] = Field(default_factory=dict)
    elements: list[ModelElement] = Field(default_factory=list)

    @field_validator("textures", mode="before")
    @classmethod
    def normalise_textures(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("textures must be an object")
        out: dict[str, str] = {}
        for name, ref in value.items():
            if isinstance(ref, dict):
                ref = ref.get("sprite")
            if not isinstance(ref, str):
                raise ValueError(f"texture variable {name!r} must be a string")
            out[str(name)] = ref
        return out

    @property
    def face_map(self) -> Optional[dict[str, str]]:
        """Faces of the first element; further elements are not composited."""
        if not self.elements:
            return None
        return self.elements[0].faces
