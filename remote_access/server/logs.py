"""Read-back route for the daily access log."""
from datetime import datetime
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException

from . import schemas
from .access_log import DATE_FORMAT, AccessLog, get_access_log
from .auth import get_current_session

router = APIRouter(prefix="/access_log", tags=["access_log"])


@router.get("/{day}", response_model=List[schemas.AccessRecordOut])
def read_access_log(
    day: str,
    _: Dict[str, object] = Depends(get_current_session),
    journal: AccessLog = Depends(get_access_log),
):
    try:
        parsed = datetime.strptime(day, DATE_FORMAT).date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Day must be YYYY-MM-DD")
    return [
        schemas.AccessRecordOut(timestamp=record.timestamp, kind=record.kind, fields=record.fields())
        for record in journal.read(parsed)
    ]
