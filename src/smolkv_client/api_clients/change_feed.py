"""Change-feed consumer for subscribed collections.

The subscribe endpoint answers with a long-lived, newline-delimited text
stream. Only lines starting with ``data: `` carry an event; the rest of
such a line is one JSON-encoded ``CollectionEvent``. Anything else, and any
frame that fails to decode, is skipped without ending the stream.
"""

import logging
from typing import AsyncGenerator, Optional

import httpx
from pydantic import ValidationError

from .errors import error_for_exception
from .models import CollectionEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "


def parse_event_line(line: str) -> Optional[CollectionEvent]:
    """Decode one stream line, returning None when it carries no event."""
    line = line.rstrip("\r\n")
    if not line.startswith(DATA_PREFIX):
        return None

    try:
        return CollectionEvent.model_validate_json(line[len(DATA_PREFIX) :])
    except ValidationError as e:
        logger.debug(f"Skipping undecodable change-feed frame: {e.error_count()} errors")
        return None


class ChangeFeed:
    """Lazy, cancellable sequence of events from one subscription.

    Iterate with ``async for``; close the feed (or leave its ``async with``
    block) to release the underlying connection. ``aclose`` may be called
    from another task while one is iterating; the iterating task then stops
    at its next line without raising. The sequence has no end other than
    the connection closing, and is not restartable: a new subscription
    starts a fresh stream with no replay.
    """

    def __init__(self, response: httpx.Response, collection: str = ""):
        self._response = response
        self.collection = collection
        self._events: Optional[AsyncGenerator[CollectionEvent, None]] = None
        self._closing = False

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    async def _iter_events(self) -> AsyncGenerator[CollectionEvent, None]:
        try:
            async for line in self._response.aiter_lines():
                if self._closing:
                    return
                event = parse_event_line(line)
                if event is None:
                    if line.strip():
                        logger.debug(f"Skipping change-feed line: {line[:80]!r}")
                    continue
                yield event
        except (httpx.HTTPError, httpx.StreamError) as e:
            # Reads interrupted by our own aclose end the sequence quietly
            if self._closing:
                return
            raise error_for_exception(e) from e
        finally:
            await self._response.aclose()

    def __aiter__(self) -> AsyncGenerator[CollectionEvent, None]:
        if self._events is None:
            self._events = self._iter_events()
        return self._events

    async def aclose(self) -> None:
        """Stop consuming and release the connection."""
        self._closing = True
        try:
            if self._events is not None:
                await self._events.aclose()
        except RuntimeError as e:
            # Still being iterated by another task, which stops at its next line
            logger.debug(f"Change feed for {self.collection!r} closed while in use: {e}")
        finally:
            await self._response.aclose()
        logger.debug(f"Change feed for {self.collection!r} closed")

    async def __aenter__(self) -> "ChangeFeed":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
