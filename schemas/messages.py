from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


# Client -> relay

class InboundMessage(BaseModel):
    # Unknown fields are tolerated and dropped
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    roomId: str


class JoinMessage(InboundMessage):
    userId: str


class LeaveMessage(InboundMessage):
    userId: str


class GetParticipantsMessage(InboundMessage):
    userId: Optional[str] = None


class SignalMessage(InboundMessage):
    """Point-to-point negotiation message; the payload is never inspected."""
    target: str
    sender: str = Field(alias="from")


class OfferMessage(SignalMessage):
    offer: Any


class AnswerMessage(SignalMessage):
    answer: Any


class IceCandidateMessage(SignalMessage):
    candidate: Any


# Relay -> client

class OutboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class JoinedMessage(OutboundMessage):
    type: str = "joined"
    userId: str
    roomId: str


class LeftMessage(OutboundMessage):
    type: str = "left"
    userId: str
    roomId: str


class ParticipantsMessage(OutboundMessage):
    type: str = "participants"
    participants: list[str]


def relayed_signal(message: SignalMessage, payload_field: str) -> dict:
    """Re-wrap a negotiation payload with the sender-supplied routing metadata."""
    return {
        "type": message.type,
        payload_field: getattr(message, payload_field),
        "from": message.sender,
        "target": message.target,
    }
