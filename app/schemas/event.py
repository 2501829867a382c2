from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel
from app.schemas.home import EventCard, EventOut

class EventRegisterIn(CamelModel):
    event_id: int

class RegistrationOut(CamelModel):
    id: int
    event_id: int
    user_id: int
    is_attended: bool
    created_at: Optional[datetime] = None

class EventPage(CamelModel):
    events: List[EventCard]
    total_events: int
    current_page: int
    total_pages: int

class EventDetail(EventOut):
    total_registrations: int = 0

class EventDetailOut(CamelModel):
    event: EventDetail
    is_registered: bool
    suggested_events: List[EventCard]

class AttendedEvent(EventOut):
    attended_at: Optional[datetime] = None

class AttendedEventsOut(CamelModel):
    events: List[AttendedEvent]
    total_attended: int
