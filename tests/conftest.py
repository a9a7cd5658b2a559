"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest

from toolrelay.ai.orchestration.backends import Backend, BackendPool
from toolrelay.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _clear_relay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TOOLRELAY_MERGE_API_KEY",
        "TOOLRELAY_MERGE_ENDPOINT",
        "TOOLRELAY_MERGE_MODEL",
        "TOOLRELAY_REDIRECTIONS_PATH",
        "TOOLRELAY_DEBUG_LOGGING",
        "TOOLRELAY_REQUEST_TIMEOUT",
        "TOOLRELAY_APPROVAL_TIMEOUT",
        "TOOLRELAY_MAX_RETRIES",
        "TOOLRELAY_DISABLED_TOOLS",
        "TOOLRELAY_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def backend_pool() -> BackendPool:
    return BackendPool(
        [
            Backend(id="filesystem", kind="filesystem"),
            Backend(id="shell", kind="shell"),
        ]
    )


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    state = (logging_utils._STATE.path, logging_utils._STATE.level)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging_utils._STATE.path, logging_utils._STATE.level = state
