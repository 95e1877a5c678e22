"""
Queue runtime entry point.

The worker and its clients are built once per process and reused across
invocations on one persistent event loop, since the async clients are bound
to the loop they were created on.
"""

import asyncio
import logging
from typing import Any, Optional

from sheet_risk.config import Settings
from sheet_risk.logging_setup import configure_logging
from sheet_risk.worker import Worker

logger = logging.getLogger(__name__)

_loop: Optional[asyncio.AbstractEventLoop] = None
_worker: Optional[Worker] = None


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


async def _build_worker() -> Worker:
    worker = Worker.from_settings(Settings.from_env())
    await worker.start()
    return worker


def _get_worker() -> Worker:
    """Build the worker on first use, on the shared loop. ConfigurationError here aborts startup."""
    global _worker
    if _worker is None:
        configure_logging()
        _worker = _get_loop().run_until_complete(_build_worker())
    return _worker


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Process one queue event and return {"batchItemFailures": [...]}."""
    worker = _get_worker()
    records = event.get("Records") or []
    logger.info("Invocation started with %d records", len(records))
    return _get_loop().run_until_complete(worker.handle(event))


def shutdown() -> None:
    """Close the shared clients and the loop."""
    global _worker, _loop
    if _worker is not None and _loop is not None and not _loop.is_closed():
        _loop.run_until_complete(_worker.close())
    _worker = None
    if _loop is not None:
        _loop.close()
    _loop = None
