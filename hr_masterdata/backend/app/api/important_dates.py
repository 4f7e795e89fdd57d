"""
Important dates API

Everyone can read the calendar; HR Admin maintains it.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.dependencies import RoleContext, get_role_context, require_hr_admin
from app.exceptions import ValidationFailed
from app.schemas.common import envelope, request_meta
from app.schemas.important_date import (
    ImportantDateCreate,
    ImportantDateResponse,
    ImportantDateUpdate,
    PE3Option,
)
from app.services.important_date_service import ImportantDateService, format_important_date_option

logger = logging.getLogger(__name__)

router = APIRouter()


def _out(item) -> dict:
    return ImportantDateResponse.model_validate(item).model_dump()


@router.get("/important-dates")
def list_important_dates(
    category: Optional[str] = Query(None),
    ctx: RoleContext = Depends(get_role_context),
):
    items = ImportantDateService.list_dates(ctx.db, category)
    return envelope([_out(i) for i in items], meta={"total": len(items)})


@router.get("/important-dates/available-pe3")
def available_pe3_dates(ctx: RoleContext = Depends(get_role_context)):
    """Upcoming PE3 dates not assigned to any non-archived employee"""
    items = ImportantDateService.available_pe3_dates(ctx.db)
    options = [
        PE3Option(
            id=i.id,
            label=format_important_date_option(i),
            date_value=i.date_value,
            week_number=i.week_number,
            year=i.year,
        ).model_dump()
        for i in items
    ]
    return envelope(options, meta=request_meta(total=len(options)))


@router.post("/important-dates/import")
async def import_important_dates(
    file: UploadFile = File(...),
    ctx: RoleContext = Depends(require_hr_admin),
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise ValidationFailed("File must be a CSV file")
    content = await file.read()
    return envelope(ImportantDateService.import_csv(ctx.db, content), meta=request_meta())


@router.post("/important-dates", status_code=status.HTTP_201_CREATED)
def create_important_date(body: ImportantDateCreate, ctx: RoleContext = Depends(require_hr_admin)):
    return envelope(_out(ImportantDateService.create_date(ctx.db, body)))


@router.get("/important-dates/{date_id}")
def get_important_date(date_id: UUID, ctx: RoleContext = Depends(get_role_context)):
    return envelope(_out(ImportantDateService.get_date(ctx.db, date_id)))


@router.patch("/important-dates/{date_id}")
def update_important_date(date_id: UUID, body: ImportantDateUpdate, ctx: RoleContext = Depends(require_hr_admin)):
    return envelope(_out(ImportantDateService.update_date(ctx.db, date_id, body)))


@router.delete("/important-dates/{date_id}")
def delete_important_date(date_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    ImportantDateService.delete_date(ctx.db, date_id)
    return envelope({"id": date_id, "message": "Important date deleted successfully"})
