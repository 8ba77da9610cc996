from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .resolver import DEFAULT_MAX_CHAIN_DEPTH
from .structure import AIR_BLOCK

ENV_PREFIX = "MCSTRUCTURE_GLB_"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    assets_dir: Path = Path("assets")
    workers: int = 1
    lenient: bool = False
    max_chain_depth: int = DEFAULT_MAX_CHAIN_DEPTH
    air_name: str = AIR_BLOCK
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.max_chain_depth < 1:
            raise ValueError("max_chain_depth must be >= 1")
        # getLevelName maps known names to their int level.
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            assets_dir=Path(os.environ.get(f"{ENV_PREFIX}ASSETS_DIR", "assets")),
            workers=_env_int(f"{ENV_PREFIX}WORKERS", 1),
            lenient=_env_bool(f"{ENV_PREFIX}LENIENT", False),
            max_chain_depth=_env_int(f"{ENV_PREFIX}MAX_CHAIN_DEPTH", DEFAULT_MAX_CHAIN_DEPTH),
            air_name=os.environ.get(f"{ENV_PREFIX}AIR_NAME", AIR_BLOCK),
            log_level=os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)
