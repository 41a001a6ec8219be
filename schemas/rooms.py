from pydantic import BaseModel


class RoomSummary(BaseModel):
    room_id: str
    members: int
    capacity: int
    is_full: bool
