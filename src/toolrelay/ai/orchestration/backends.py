"""Connected backends and resolution of the backend that serves a capability."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Iterable, Mapping, Protocol, Sequence

from ..tools.errors import BackendUnavailableError

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Backend Descriptor
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Backend:
    """One connected capability provider.

    Attributes:
        id: Unique backend identifier (the server name).
        kind: Capability kind it provides, e.g. ``filesystem`` or ``shell``.
        is_alive: Whether the backend currently accepts calls.
        operations: Operations declared at connect time; empty means undeclared.
    """

    id: str
    kind: str
    is_alive: bool = True
    operations: frozenset[str] = field(default_factory=frozenset)

    def supports(self, operation: str | None) -> bool:
        if operation is None or not self.operations:
            return True
        return operation in self.operations

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "is_alive": self.is_alive,
            "operations": sorted(self.operations),
        }


class BackendDiscovery(Protocol):
    """Connectivity collaborator listing the backends connected right now."""

    def list_active_backends(self) -> Sequence[Backend] | Awaitable[Sequence[Backend]]:
        ...


class BackendTransport(Protocol):
    """Executes an operation on a backend."""

    def call_tool(self, backend_id: str, operation: str, arguments: Mapping[str, Any]) -> Any:
        ...


# -----------------------------------------------------------------------------
# Backend Pool
# -----------------------------------------------------------------------------


class BackendPool:
    """In-process backend set mutated by connect/disconnect events.

    Registration order is preserved and is the order used for fallback.
    """

    def __init__(self, backends: Iterable[Backend] = ()) -> None:
        self._backends: dict[str, Backend] = {}
        for backend in backends:
            self.connect(backend)

    def connect(self, backend: Backend) -> None:
        """Register ``backend``; re-connecting an id replaces it in place."""
        replaced = backend.id in self._backends
        self._backends[backend.id] = backend
        LOGGER.debug(
            "Backend %s (%s) %s",
            backend.id,
            backend.kind,
            "reconnected" if replaced else "connected",
        )

    def disconnect(self, backend_id: str) -> bool:
        removed = self._backends.pop(backend_id, None)
        if removed is not None:
            LOGGER.debug("Backend %s disconnected", backend_id)
        return removed is not None

    def mark_alive(self, backend_id: str, alive: bool) -> None:
        backend = self._backends.get(backend_id)
        if backend is None:
            raise KeyError(backend_id)
        self._backends[backend_id] = replace(backend, is_alive=alive)

    def get(self, backend_id: str) -> Backend | None:
        return self._backends.get(backend_id)

    def list_backends(self) -> list[Backend]:
        return list(self._backends.values())

    def list_active_backends(self) -> list[Backend]:
        return [backend for backend in self._backends.values() if backend.is_alive]


# -----------------------------------------------------------------------------
# Backend Resolver
# -----------------------------------------------------------------------------


class BackendResolver:
    """Picks the backend that serves a capability kind.

    The preferred backend wins when it is alive; otherwise the first live
    backend of the same kind, in registration order, is used. The backend
    set is queried on every call.
    """

    def __init__(self, discovery: BackendDiscovery) -> None:
        self._discovery = discovery

    async def list_active(self) -> list[Backend]:
        result = self._discovery.list_active_backends()
        if inspect.isawaitable(result):
            result = await result
        return list(result or ())

    async def resolve(
        self,
        kind: str,
        *,
        preferred: str | None = None,
        operation: str | None = None,
    ) -> Backend:
        """Return a live backend of ``kind``.

        Raises:
            BackendUnavailableError: No live backend of the kind is connected.
        """
        active = await self.list_active()
        candidates = [
            backend
            for backend in active
            if backend.is_alive and backend.kind == kind and backend.supports(operation)
        ]
        if not candidates:
            raise BackendUnavailableError(
                message=f"No live backend of kind '{kind}' is connected",
                kind=kind,
                details={"operation": operation} if operation else {},
            )

        wanted = preferred or kind
        for backend in candidates:
            if backend.id == wanted:
                return backend

        fallback = candidates[0]
        LOGGER.warning(
            "Preferred backend %s is not alive; falling back to %s for kind %s",
            wanted,
            fallback.id,
            kind,
        )
        return fallback


__all__ = [
    "Backend",
    "BackendDiscovery",
    "BackendTransport",
    "BackendPool",
    "BackendResolver",
]
