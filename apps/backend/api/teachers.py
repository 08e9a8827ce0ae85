from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from models.schemas import Teacher
from services.scheduling.sources import load_teachers
from typing import List, Optional

router = APIRouter(prefix="/teachers", tags=["Teachers"])

@router.get("/", response_model=List[Teacher])
async def list_teachers(
    org_id: Optional[str] = None,
    teacher_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    """Teachers of one organization. Without a valid org_id the list is empty."""
    return load_teachers(db, org_id, teacher_ids)
