from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.user import UserBrief

# ---------- 入参 ----------
class ProgramStartIn(CamelModel):
    name: str = Field(min_length=1, max_length=128)
    description: Optional[str] = None

class ProgramEndIn(CamelModel):
    program_id: int

class LotAssignIn(CamelModel):
    program_id: int
    user_id: int

class PaymentRecordIn(CamelModel):
    lot_id: Optional[int] = None
    year: Optional[int] = None
    month: Optional[int] = None

class PaymentUpdateIn(CamelModel):
    lot_id: int
    year: int
    month: int

class WinnerEntryIn(CamelModel):
    lot_id: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None
    prize_amount: Optional[Decimal] = None

class WinnersAddIn(CamelModel):
    program_id: Optional[int] = None
    winners: Optional[List[WinnerEntryIn]] = None

class WinnerUpdateIn(CamelModel):
    program_id: int
    lot_id: int
    month: int
    year: int
    prize_amount: Optional[Decimal] = None

# ---------- 出参 ----------
class ProgramOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

class ProgramCounts(CamelModel):
    lots: int
    winners: int

class ProgramWithCounts(ProgramOut):
    counts: ProgramCounts

class PaymentOut(CamelModel):
    id: int
    lot_id: int
    year: int
    month: int
    is_paid: bool
    paid_at: Optional[datetime] = None

class WinnerOut(CamelModel):
    id: int
    program_id: int
    lot_id: int
    year: int
    month: int
    prize_amount: Optional[float] = None
    created_at: Optional[datetime] = None

class LotOut(CamelModel):
    id: int
    program_id: int
    user_id: int
    created_at: Optional[datetime] = None

class PaymentWithLot(PaymentOut):
    lot: LotOut

class LotWithUser(LotOut):
    user: UserBrief

class WinnerWithLot(WinnerOut):
    lot: LotWithUser

class LotWithHistory(LotWithUser):
    payments: List[PaymentOut]
    winners: List[WinnerOut]

class LotDetailOut(LotWithHistory):
    program: ProgramOut

class ActiveProgramOut(ProgramOut):
    lots: List[LotWithUser]
    winners: List[WinnerWithLot]

class ProgramDetailOut(ProgramOut):
    lots: List[LotWithHistory]
    winners: List[WinnerWithLot]

class CurrentWinnersOut(CamelModel):
    winners: List[WinnerWithLot]
    month: int
    year: int
    is_fallback: bool
