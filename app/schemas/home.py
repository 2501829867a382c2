from datetime import date, datetime
from typing import List, Optional
from pydantic import field_validator

from app.core.media import to_data_url
from app.schemas.common import CamelModel


class ImageModel(CamelModel):
    """带二进制图片字段的出参：bytes 自动转 data URL"""

    @field_validator("image", "logo", "profile_image", mode="before", check_fields=False)
    @classmethod
    def encode_image(cls, v):
        if isinstance(v, (bytes, bytearray, memoryview)):
            return to_data_url(bytes(v))
        return v


class AvatarOut(ImageModel):
    profile_image: Optional[str] = None

class RegistrationPreview(CamelModel):
    user: AvatarOut

class EventOut(ImageModel):
    id: int
    title: str
    event_date: datetime
    place: Optional[str] = None
    timing: Optional[str] = None
    highlights: Optional[str] = None
    event_type: Optional[str] = None
    image: Optional[str] = None
    is_finished: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class EventCard(EventOut):
    total_registrations: int = 0
    registrations: List[RegistrationPreview] = []

class ServiceOut(ImageModel):
    id: int
    title: str
    location: Optional[str] = None
    starting_time: Optional[str] = None
    stopping_time: Optional[str] = None
    available_days: Optional[str] = None
    image: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None

class JobCard(ImageModel):
    id: int
    company_name: str
    logo: Optional[str] = None
    position: str
    job_mode: Optional[str] = None
    salary: Optional[str] = None
    place: Optional[str] = None

class NewsCard(ImageModel):
    id: int
    type: Optional[str] = None
    heading: str
    author: Optional[str] = None
    created_at: Optional[datetime] = None
    image: Optional[str] = None

class AirportOut(CamelModel):
    id: int
    name: str
    iata_code: Optional[str] = None
    country: Optional[str] = None

class TravelCard(CamelModel):
    id: int
    user_id: int
    user_name: str
    from_airport: AirportOut
    to_airport: AirportOut
    travel_date: date
    travel_time: str
    status: str
    created_at: Optional[datetime] = None

class HomeWinner(CamelModel):
    id: int
    year: int
    month: int
    month_name: str
    prize_amount: Optional[float] = None
    winner_name: str
    member_id: Optional[str] = None
    created_at: Optional[datetime] = None

class HomeGoldProgram(CamelModel):
    is_active: bool
    current_winners: List[HomeWinner]
    winners_month: str
    winners_year: int
    is_current_month: bool
    total_participants: int

class HomeInvestment(CamelModel):
    total_participants: int

class HomeOut(CamelModel):
    banner_image: Optional[str] = None
    events: List[EventCard]
    jobs: List[JobCard]
    services: List[ServiceOut]
    news: List[NewsCard]
    travels: List[TravelCard]
    gold_program: HomeGoldProgram
    long_term_investment: HomeInvestment
