"""Runtime control messages sent to a running processor."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from core.processor import FeedProcessor

LOGGER = logging.getLogger(__name__)


async def handle_control_message(
    processor: FeedProcessor, message: Mapping[str, Any]
) -> Optional[dict[str, Any]]:
    """Dispatch one control message.

    Supported actions:
    - ``updateDryRun``: switch dry run and re-run classification, no response
    - ``refreshFilters``: reload options and rules, respond with success flag
    - ``getStatus``: respond with the current status
    """

    action = message.get("action")
    LOGGER.debug("Control message received: %s", action)

    if action == "updateDryRun":
        processor.set_dry_run(bool(message.get("value")))
        await processor.run_pass()
        return None

    if action == "refreshFilters":
        try:
            loaded = await processor.load_configuration()
        except Exception as e:
            LOGGER.exception("Failed to refresh filters")
            return {"success": False, "error": str(e)}
        if not loaded:
            return {"success": False, "error": "configuration could not be loaded"}
        await processor.run_pass()
        return {"success": True}

    if action == "getStatus":
        return processor.status()

    LOGGER.debug("Ignoring unknown control action %r", action)
    return None
