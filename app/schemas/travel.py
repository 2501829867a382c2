from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.home import AirportOut

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

class TravelIn(CamelModel):
    from_airport_id: int
    to_airport_id: int
    travel_date: date
    travel_time: str = Field(pattern=TIME_PATTERN)

class TravelUpdateIn(TravelIn):
    status: Literal["AVAILABLE", "ONBOARD", "NOT_AVAILABLE"]

class TravelUser(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    member_id: Optional[str] = None

class TravelOut(CamelModel):
    id: int
    user_id: int
    from_airport: AirportOut
    to_airport: AirportOut
    travel_date: date
    travel_time: str
    status: str
    created_at: Optional[datetime] = None
    user: TravelUser

class UpcomingTravel(TravelOut):
    is_accessed: bool = False

class Pagination(CamelModel):
    total: int
    total_pages: int
    current_page: int
    has_next_page: bool
    has_previous_page: bool

class UpcomingTravelsOut(CamelModel):
    travels: List[UpcomingTravel]
    pagination: Pagination
