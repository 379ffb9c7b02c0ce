from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging
from daybook.core.database import get_db
from daybook.schemas.entry import EntryCreate, EntryCommand, EntryResponse, EntryWriteResponse, PaginatedEntries, DiaryStats
from daybook.services import diary_service
from daybook.services.export_service import parse_export_format
from daybook.utils.parsing import parse_month_input, parse_year_input
from daybook.api.deps import get_current_user
from daybook.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

def _year_or_400(year: Optional[str]) -> Optional[int]:
    if year is None:
        return None
    parsed = parse_year_input(year)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid year. Use YYYY between 1970 and 2100")
    return parsed

async def _write_entry(entry_in: EntryCreate, response: Response, db: AsyncSession, user_id: int):
    entry, was_update = await diary_service.add_entry(db, user_id, entry_in)
    response.status_code = status.HTTP_200_OK if was_update else status.HTTP_201_CREATED
    return {"entry": entry, "was_update": was_update}

@router.post("/", response_model=EntryWriteResponse, status_code=status.HTTP_201_CREATED)
async def add_entry(
    entry_in: EntryCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create today's entry, or overwrite it if one already exists (200)."""
    return await _write_entry(entry_in, response, db, current_user.id)

@router.post("/command", response_model=EntryWriteResponse, status_code=status.HTTP_201_CREATED)
async def add_entry_from_command(
    command: EntryCommand,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Same as POST / but takes raw "/add" arguments like "8 ok day"."""
    try:
        entry_in = command.to_entry()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _write_entry(entry_in, response, db, current_user.id)

@router.get("/today", response_model=EntryResponse)
async def get_today_entry(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entry = await diary_service.get_today_entry(db, current_user.id)
    if not entry:
        raise HTTPException(status_code=404, detail="No entry for today yet")
    return entry

@router.get("/", response_model=PaginatedEntries)
async def list_entries(
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    page: int = 1,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    year = month_number = None
    if month is not None:
        parsed = parse_month_input(month)
        if not parsed:
            raise HTTPException(status_code=400, detail="Invalid month. Use YYYY-MM")
        year, month_number = parsed

    return await diary_service.get_entries_for_month(db, current_user.id, year, month_number, page=page)

@router.get("/stats", response_model=DiaryStats)
async def get_stats(
    year: Optional[str] = Query(None, description="YYYY, defaults to the current year"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await diary_service.get_stats_for_year(db, current_user.id, _year_or_400(year))

@router.get("/export")
async def export_entries(
    format: str = "csv",
    year: Optional[str] = Query(None, description="YYYY, defaults to the current year"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    fmt = parse_export_format(format)
    if not fmt:
        raise HTTPException(status_code=400, detail="Unsupported format. Use csv or json")

    export = await diary_service.export_entries(db, current_user.id, fmt, _year_or_400(year))
    if not export:
        raise HTTPException(status_code=404, detail="No entries found for that year")

    return Response(
        content=export.content,
        media_type=f"{export.media_type}; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
