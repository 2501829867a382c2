# app/services/gold_export_service.py
from io import BytesIO
from typing import List, Tuple
from urllib.parse import quote

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError
from app.models.gold import GoldLot, GoldPayment, GoldProgram

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADERS = ["Member ID", "Name", "Total Payments", "Payment Dates", "Last Payment"]
COLUMN_WIDTHS = [15, 30, 15, 60, 15]


def fmt_period(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def payment_rows(lots: List[GoldLot]) -> List[list]:
    rows = []
    for lot in lots:
        periods = [fmt_period(p.year, p.month) for p in lot.payments]
        rows.append([
            lot.user.member_id,
            lot.user.name,
            len(periods),
            ", ".join(periods),
            periods[-1] if periods else "None",
        ])
    return rows


def render_workbook(rows: List[list], sheet_title: str = "Payments") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for i, width in enumerate(COLUMN_WIDTHS):
        ws.column_dimensions[chr(ord("A") + i)].width = width
    for row in rows:
        ws.append(row)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


async def export_payments(session: AsyncSession, program_id: int) -> Tuple[str, bytes]:
    """每个 lot 一行：会员号、姓名、已缴次数、缴费月份、最后一次缴费。返回 (文件名, xlsx 字节)"""
    program_name = await session.scalar(
        select(GoldProgram.name).where(GoldProgram.id == program_id)
    )
    rs = await session.execute(
        select(GoldLot)
        .where(GoldLot.program_id == program_id)
        .options(
            selectinload(GoldLot.user),
            selectinload(GoldLot.payments.and_(GoldPayment.is_paid.is_(True))),
        )
        .order_by(GoldLot.id)
    )
    lots = list(rs.scalars().all())
    if not lots:
        raise NotFoundError("No lots found for this program")

    filename = quote(f"gold_payments_{program_name or program_id}.xlsx")
    return filename, render_workbook(payment_rows(lots))
