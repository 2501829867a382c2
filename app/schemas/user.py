from datetime import date, datetime
from typing import List, Optional
from pydantic import EmailStr, Field, field_validator

from app.core.media import to_data_url
from app.schemas.common import CamelModel


def _image_to_url(v, mime: str = "image/jpeg"):
    if isinstance(v, (bytes, bytearray, memoryview)):
        return to_data_url(bytes(v), mime)
    return v


class RegisterIn(CamelModel):
    name: str = Field(min_length=1, max_length=128)
    email: EmailStr
    password: str = Field(min_length=6, max_length=64)
    phone_number: Optional[str] = None
    member_id: Optional[str] = None
    gender: Optional[str] = None

class LoginIn(CamelModel):
    email: EmailStr
    password: str

class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"

class UserBrief(CamelModel):
    id: int
    name: str
    email: str
    phone_number: Optional[str] = None
    member_id: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator("profile_image", mode="before")
    @classmethod
    def encode_profile_image(cls, v):
        return _image_to_url(v, "image/png")

class UserOut(UserBrief):
    gender: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None


# /me
class ProfileOut(CamelModel):
    occupation: Optional[str] = None
    employer: Optional[str] = None
    place: Optional[str] = None
    date_of_birth: Optional[date] = None
    blood_group: Optional[str] = None
    kmcc_position: Optional[str] = None
    address: Optional[str] = None

class LastPayment(CamelModel):
    month: int
    year: int
    is_paid: bool

class LastWin(CamelModel):
    month: int
    year: int
    prize_amount: Optional[float] = None

class GoldLotSummary(CamelModel):
    lot_id: int
    program_id: int
    program_name: str
    last_payment: Optional[LastPayment] = None
    has_won: bool = False
    last_win: Optional[LastWin] = None

class GoldProgramsSummary(CamelModel):
    count: int
    total_payments: int
    details: List[GoldLotSummary]

class AmountPoint(CamelModel):
    date: datetime
    amount: float

class InvestmentSummary(CamelModel):
    investment_id: int
    total_deposited: float
    total_profit: float
    profit_distributed: float
    profit_pending: float
    last_deposit: Optional[AmountPoint] = None
    deposit_history: List[AmountPoint]
    cumulative_investment: List[AmountPoint]

class MeOut(UserOut):
    membership_id: Optional[str] = None
    profile: Optional[ProfileOut] = None
    gold_programs: GoldProgramsSummary
    long_term_investment: Optional[InvestmentSummary] = None
