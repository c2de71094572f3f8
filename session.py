import json
from enum import Enum
from typing import Union

from connection import ConnectionHandle
from logging_config import get_logger
from signaling import SignalRouter

logger = get_logger(__name__)


class SessionState(str, Enum):
    CONNECTED = "connected"
    CLOSED = "closed"


class SignalingSession:
    """Binds one connection's frames and close event to the router.

    A bad frame never ends the session; close is terminal and idempotent.
    """

    def __init__(self, handle: ConnectionHandle, router: SignalRouter):
        self.handle = handle
        self.router = router
        self.state = SessionState.CONNECTED
        self.frame_count = 0

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def handle_frame(self, frame: Union[str, bytes]):
        if self.closed:
            logger.debug(f"Dropping frame for closed session {self.handle!r}")
            return

        self.frame_count += 1
        try:
            if isinstance(frame, bytes):
                frame = frame.decode("utf-8")
            data = json.loads(frame)
        except (ValueError, RecursionError) as e:
            # ValueError covers bad UTF-8, bad JSON and oversized integers
            logger.warning(f"Dropping undecodable frame #{self.frame_count} from {self.handle!r}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Dropping frame #{self.frame_count} from {self.handle!r}: expected a JSON object")
            return

        await self.router.dispatch(self.handle, data)

    async def close(self):
        if self.closed:
            return
        self.state = SessionState.CLOSED
        logger.info(f"Session closed for {self.handle!r} after {self.frame_count} frames")
        memberships = await self.router.registry.memberships(self.handle)
        logger.debug(f"Cleaning up {len(memberships)} memberships for {self.handle!r}: {sorted(memberships)}")
        await self.router.disconnect(self.handle)
