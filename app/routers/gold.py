from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.timeutil import get_now
from app.db.session import get_session
from app.models.user import User
from app.schemas.common import ApiResponse, ok
from app.schemas.gold import (
    ProgramStartIn, ProgramEndIn, LotAssignIn, PaymentRecordIn, PaymentUpdateIn,
    WinnersAddIn, WinnerUpdateIn,
    ProgramOut, ProgramCounts, ProgramWithCounts, ActiveProgramOut, ProgramDetailOut,
    LotWithUser, LotWithHistory, LotDetailOut, PaymentOut, PaymentWithLot,
    WinnerOut, WinnerWithLot, CurrentWinnersOut,
)
from app.services import (
    gold_program_service as programs,
    gold_lot_service as lots,
    gold_payment_service as payments,
    gold_winner_service as winners,
    gold_export_service as exports,
)

router = APIRouter(prefix="/api/gold", tags=["gold"])

# 注意顺序：静态路径必须在 /{program_id} 之前注册

# ===================== 期次生命周期 =====================
@router.post("/start", response_model=ApiResponse[ProgramOut], status_code=201)
async def start_program(
        payload: ProgramStartIn,
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
):
    program = await programs.start_program(session, payload.name, payload.description, now)
    return ok(ProgramOut.model_validate(program), "Program started successfully", 201)

@router.post("/end", response_model=ApiResponse[ProgramOut])
async def end_program(
        payload: ProgramEndIn,
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
):
    program = await programs.end_program(session, payload.program_id, now)
    return ok(ProgramOut.model_validate(program), "Program ended successfully")

@router.get("/active", response_model=ApiResponse[Optional[ActiveProgramOut]])
async def active_program(session: AsyncSession = Depends(get_session)):
    program = await programs.get_active_program(session)
    data = ActiveProgramOut.model_validate(program) if program else None
    return ok(data, "Active program retrieved")

@router.get("/all", response_model=ApiResponse[List[ProgramWithCounts]])
async def all_programs(session: AsyncSession = Depends(get_session)):
    rows = await programs.list_programs(session)
    data = [
        ProgramWithCounts(
            **ProgramOut.model_validate(p).model_dump(),
            counts=ProgramCounts(lots=lc, winners=wc),
        )
        for p, lc, wc in rows
    ]
    return ok(data, "All programs retrieved")

# ===================== Lot =====================
@router.post("/lots", response_model=ApiResponse[LotWithUser], status_code=201)
async def assign_lot(payload: LotAssignIn, session: AsyncSession = Depends(get_session)):
    lot = await lots.assign_lot(session, payload.program_id, payload.user_id)
    return ok(LotWithUser.model_validate(lot), "Lot assigned successfully", 201)

@router.get("/lots/{lot_id}", response_model=ApiResponse[LotDetailOut])
async def lot_details(lot_id: int, session: AsyncSession = Depends(get_session)):
    lot = await lots.get_lot_details(session, lot_id)
    return ok(LotDetailOut.model_validate(lot), "Lot details retrieved")

@router.delete("/lots/{lot_id}", response_model=ApiResponse[None])
async def delete_lot(lot_id: int, session: AsyncSession = Depends(get_session)):
    await lots.delete_lot(session, lot_id)
    return ok(None, "Lot deleted successfully")

# ===================== 缴费 =====================
@router.post("/payments", response_model=ApiResponse[PaymentWithLot])
async def record_payment(
        payload: PaymentRecordIn,
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
):
    payment = await payments.record_payment(
        session, payload.lot_id, payload.year, payload.month, now
    )
    return ok(PaymentWithLot.model_validate(payment), "Payment recorded successfully")

@router.put("/payments/{payment_id}", response_model=ApiResponse[PaymentOut])
async def update_payment(
        payment_id: int,
        payload: PaymentUpdateIn,
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
        current_user: User = Depends(get_current_user),
):
    payment = await payments.update_payment(
        session, payment_id, payload.year, payload.month, payload.lot_id, now
    )
    return ok(PaymentOut.model_validate(payment), "Payment updated successfully")

@router.delete("/payments/{payment_id}", response_model=ApiResponse[PaymentOut])
async def delete_payment(
        payment_id: int,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    payment = await payments.delete_payment(session, payment_id)
    return ok(PaymentOut.model_validate(payment), "Payment deleted successfully")

# ===================== 中奖 =====================
@router.post("/winners", response_model=ApiResponse[List[WinnerWithLot]], status_code=201)
async def add_winners(payload: WinnersAddIn, session: AsyncSession = Depends(get_session)):
    created = await winners.add_winners(session, payload.program_id, payload.winners)
    return ok(
        [WinnerWithLot.model_validate(w) for w in created],
        "Winners added successfully!",
        201,
    )

@router.get("/winners/current", response_model=ApiResponse[CurrentWinnersOut])
async def current_winners(
        session: AsyncSession = Depends(get_session),
        now: datetime = Depends(get_now),
):
    rows, year, month, is_fallback = await winners.get_current_winners(session, now)
    data = CurrentWinnersOut(
        winners=[WinnerWithLot.model_validate(w) for w in rows],
        month=month,
        year=year,
        is_fallback=is_fallback,
    )
    return ok(data, "Winners retrieved successfully")

@router.put("/winners/{winner_id}", response_model=ApiResponse[WinnerWithLot])
async def update_winner(
        winner_id: int,
        payload: WinnerUpdateIn,
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    winner = await winners.update_winner(
        session,
        winner_id,
        month=payload.month,
        year=payload.year,
        lot_id=payload.lot_id,
        prize_amount=payload.prize_amount,
        program_id=payload.program_id,
    )
    return ok(WinnerWithLot.model_validate(winner), "Winner updated successfully")

@router.delete("/winners/{winner_id}", response_model=ApiResponse[WinnerOut])
async def delete_winner(winner_id: int, session: AsyncSession = Depends(get_session)):
    winner = await winners.delete_winner(session, winner_id)
    return ok(WinnerOut.model_validate(winner), "Winner deleted successfully")

# ===================== 按期查询 =====================
@router.get("/{program_id}", response_model=ApiResponse[ProgramDetailOut])
async def program_details(program_id: int, session: AsyncSession = Depends(get_session)):
    program = await programs.get_program_details(session, program_id)
    return ok(ProgramDetailOut.model_validate(program), "Program details retrieved")

@router.get("/{program_id}/winners", response_model=ApiResponse[List[WinnerWithLot]])
async def program_winners(program_id: int, session: AsyncSession = Depends(get_session)):
    rows = await winners.get_program_winners(session, program_id)
    return ok([WinnerWithLot.model_validate(w) for w in rows], "Program winners retrieved")

@router.get("/{program_id}/lots", response_model=ApiResponse[List[LotWithHistory]])
async def program_lots(program_id: int, session: AsyncSession = Depends(get_session)):
    rows = await lots.list_lots_by_program(session, program_id)
    return ok([LotWithHistory.model_validate(l) for l in rows], "Lots retrieved successfully")

@router.get("/{program_id}/export-payments")
async def export_payments(program_id: int, session: AsyncSession = Depends(get_session)):
    filename, content = await exports.export_payments(session, program_id)
    return Response(
        content=content,
        media_type=exports.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
