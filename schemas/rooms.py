from pydantic import BaseModel


class RoomSummary(BaseModel):
    room_id: str
    participant_count: int

class RoomListResponse(BaseModel):
    rooms: list[RoomSummary]
    room_count: int

class RoomDetailsResponse(BaseModel):
    room_id: str
    participants: list[str]
    participant_count: int
