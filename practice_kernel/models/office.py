"""Office — facility capacity and the checks made against it."""

from typing import Optional

from pydantic import BaseModel, Field


class Building(BaseModel):
    """A facility. Room count bounds concurrent in-person sessions."""

    id: str
    name: str
    tier: int = Field(ge=1, le=3)
    rooms: int = Field(ge=0)
    monthly_rent: int = 0
    upgrade_cost: int = 0
    required_level: int = 1


class RoomAvailability(BaseModel):
    total_rooms: int
    rooms_in_use: int
    rooms_available: int = Field(ge=0)
    can_book_in_person: bool
    can_book_virtual: bool = True


class BookingCheck(BaseModel):
    can_book: bool
    reason: Optional[str] = None


class UnlockCheck(BaseModel):
    can_unlock: bool
    reason: Optional[str] = None


class UpgradeCheck(BaseModel):
    can_upgrade: bool
    reason: Optional[str] = None
