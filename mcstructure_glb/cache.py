from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Iterator, Protocol

from .scene import ResolvedFaceMaterials


class Resolver(Protocol):
    def resolve(self, block_name: str) -> ResolvedFaceMaterials: ...


class MaterialCache:
    """Per-run memo of block name -> materials with single-flight resolution.

    The first caller for a name runs the resolver; concurrent callers for the
    same name wait on that call's future and receive the identical object.
    """

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver
        self._lock = threading.Lock()
        self._done: dict[str, ResolvedFaceMaterials] = {}
        self._inflight: dict[str, Future[ResolvedFaceMaterials]] = {}
        self.resolutions = 0

    def get_or_resolve(self, block_name: str) -> ResolvedFaceMaterials:
        with self._lock:
            hit = self._done.get(block_name)
            if hit is not None:
                return hit
            pending = self._inflight.get(block_name)
            if pending is None:
                pending = Future()
                self._inflight[block_name] = pending
                owner = True
                self.resolutions += 1
            else:
                owner = False

        if not owner:
            return pending.result()

        try:
            result = self._resolver.resolve(block_name)
        except BaseException as exc:
            with self._lock:
                del self._inflight[block_name]
            pending.set_exception(exc)
            raise

        with self._lock:
            self._done[block_name] = result
            del self._inflight[block_name]
        pending.set_result(result)
        return result

    def __contains__(self, block_name: object) -> bool:
        with self._lock:
            return block_name in self._done

    def __len__(self) -> int:
        with self._lock:
            return len(self._done)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._done))
