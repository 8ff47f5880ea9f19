"""Incremental decoding of newline-delimited JSON HTTP responses."""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

logger = logging.getLogger(__name__)


async def iter_json_lines(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    """Yield each JSON object line of a streaming response.

    Blank lines, malformed lines and non-object values are skipped. A
    leading server-sent-events ``data:`` prefix is tolerated.
    """
    async for line in response.aiter_lines():
        line = line.strip()
        if line.startswith("data:"):
            line = line[len("data:"):].strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed stream chunk: %.80s", line)
            continue
        if isinstance(data, dict):
            yield data
