from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Literal

LOG = logging.getLogger(__name__)

WarningKind = Literal[
    "missing_model",
    "malformed_model",
    "missing_parent",
    "missing_texture",
    "unresolved_variable",
    "chain_overflow",
]


class ConversionError(RuntimeError):
    """Base class for fatal conversion failures."""


class FormatError(ConversionError):
    """Raised when the decoded tag tree does not look like a structure."""


class ExportError(ConversionError):
    """Raised when the scene cannot be encoded or persisted."""


class ModelFormatError(ConversionError):
    """Raised by the asset store for a model document that cannot be parsed."""


@dataclass(frozen=True)
class ResolutionWarning:
    kind: WarningKind
    block: str
    detail: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.block}: {self.detail}"


class WarningLog:
    """Thread-safe accumulator for recoverable resolution problems."""

    def __init__(self) -> None:
        self._items: list[ResolutionWarning] = []
        self._lock = threading.Lock()

    def add(self, kind: WarningKind, block: str, detail: str) -> ResolutionWarning:
        warning = ResolutionWarning(kind=kind, block=block, detail=detail)
        with self._lock:
            self._items.append(warning)
        LOG.warning("%s", warning)
        return warning

    def items(self) -> list[ResolutionWarning]:
        with self._lock:
            return list(self._items)

    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(Counter(w.kind for w in self._items))

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
