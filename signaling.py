import asyncio
from typing import Iterable, List

from pydantic import ValidationError

from connection import ConnectionHandle
from constants import SEND_TIMEOUT_SECONDS
from logging_config import get_logger
from registry import RoomRegistry, Departure
from schemas.messages import (
    AnswerMessage,
    GetParticipantsMessage,
    IceCandidateMessage,
    JoinedMessage,
    JoinMessage,
    LeaveMessage,
    LeftMessage,
    OfferMessage,
    ParticipantsMessage,
    relayed_signal,
)

logger = get_logger(__name__)


class SignalRouter:
    """Dispatches decoded client messages to registry operations and targeted sends."""

    def __init__(self, registry: RoomRegistry, send_timeout: float = SEND_TIMEOUT_SECONDS):
        self.registry = registry
        self.send_timeout = send_timeout
        self._handlers = {
            "join": (JoinMessage, self.handle_join),
            "offer": (OfferMessage, self.handle_offer),
            "answer": (AnswerMessage, self.handle_answer),
            "ice-candidate": (IceCandidateMessage, self.handle_ice_candidate),
            "leave": (LeaveMessage, self.handle_leave),
            "get-participants": (GetParticipantsMessage, self.handle_get_participants),
        }

    async def dispatch(self, handle: ConnectionHandle, data: dict):
        message_type = data.get("type")
        entry = self._handlers.get(message_type) if isinstance(message_type, str) else None
        if entry is None:
            logger.debug(f"Ignoring message with unsupported type {message_type!r} from {handle!r}")
            return

        model, handler = entry
        try:
            message = model.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Ignoring malformed {message_type} message from {handle!r}: {e.error_count()} errors")
            return

        await handler(handle, message)

    async def handle_join(self, handle: ConnectionHandle, message: JoinMessage):
        others = await self.registry.join(message.roomId, message.userId, handle)
        logger.info(f"User {message.userId} joined room {message.roomId}")
        notice = JoinedMessage(userId=message.userId, roomId=message.roomId).to_wire()
        await self.fan_out(others, notice)

    async def handle_offer(self, handle: ConnectionHandle, message: OfferMessage):
        await self._relay(message, "offer")

    async def handle_answer(self, handle: ConnectionHandle, message: AnswerMessage):
        await self._relay(message, "answer")

    async def handle_ice_candidate(self, handle: ConnectionHandle, message: IceCandidateMessage):
        await self._relay(message, "candidate")

    async def handle_leave(self, handle: ConnectionHandle, message: LeaveMessage):
        departure = await self.registry.leave(message.roomId, message.userId)
        if departure is None:
            logger.debug(f"Leave for {message.userId} ignored, not a member of room {message.roomId}")
            return
        logger.info(f"User {message.userId} left room {message.roomId}")
        await self._announce_departure(departure)

    async def handle_get_participants(self, handle: ConnectionHandle, message: GetParticipantsMessage):
        participants = await self.registry.list_participants(message.roomId)
        if not participants:
            # Rooms are never empty, so this room does not exist
            logger.debug(f"Participants requested for unknown room {message.roomId}")
            return
        reply = ParticipantsMessage(participants=participants).to_wire()
        await self.fan_out([handle], reply)

    async def disconnect(self, handle: ConnectionHandle):
        """Drop every membership of a handle and tell each room's remaining members."""
        departures = await self.registry.remove_all_for_handle(handle)
        for departure in departures:
            logger.info(f"User {departure.participant_id} disconnected from room {departure.room_id}")
            await self._announce_departure(departure)

    async def fan_out(self, recipients: Iterable[ConnectionHandle], message: dict):
        """Send to every recipient concurrently; failed recipients are cleaned up afterwards."""
        recipients = list(recipients)
        if not recipients:
            return

        results = await asyncio.gather(
            *(self._bounded_send(recipient, message) for recipient in recipients),
            return_exceptions=True,
        )

        failed: List[ConnectionHandle] = []
        for recipient, result in zip(recipients, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning(f"Error sending {message.get('type')} to {recipient!r}: {result!r}")
                failed.append(recipient)

        logger.debug(f"Delivered {message.get('type')} to {len(recipients) - len(failed)}/{len(recipients)} connections")

        for recipient in failed:
            await self.disconnect(recipient)

    async def _bounded_send(self, recipient: ConnectionHandle, message: dict):
        await asyncio.wait_for(recipient.send(message), timeout=self.send_timeout)

    async def _relay(self, message, payload_field: str):
        target = await self.registry.lookup(message.roomId, message.target)
        if target is None:
            logger.debug(f"Dropping {message.type} from {message.sender}: {message.target} not in room {message.roomId}")
            return
        logger.debug(f"Relaying {message.type} from {message.sender} to {message.target} in room {message.roomId}")
        await self.fan_out([target], relayed_signal(message, payload_field))

    async def _announce_departure(self, departure: Departure):
        notice = LeftMessage(userId=departure.participant_id, roomId=departure.room_id).to_wire()
        await self.fan_out(departure.remaining, notice)
