from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db, SchedulerConfigDB
from pydantic import BaseModel
from typing import Any, Tuple
from datetime import time
from services.scheduling.timeslots import DEFAULT_END_TIME, DEFAULT_START_TIME, format_hhmm, parse_hhmm

router = APIRouter(prefix="/config", tags=["Config"])

SHIFT_DEFAULTS_KEY = "shift_defaults"
DEFAULT_SHIFT_CONFIG = {
    "default_start_time": format_hhmm(DEFAULT_START_TIME),
    "default_end_time": format_hhmm(DEFAULT_END_TIME),
}

class ConfigItem(BaseModel):
    key: str
    value: Any

def load_shift_defaults(db: Session) -> Tuple[time, time]:
    """Default range for newly staged shifts. Malformed values fall back to 09:00-18:00."""
    item = db.query(SchedulerConfigDB).filter(SchedulerConfigDB.key == SHIFT_DEFAULTS_KEY).first()
    value = item.value_json if item and isinstance(item.value_json, dict) else {}
    start = parse_hhmm(value.get("default_start_time"), DEFAULT_START_TIME)
    end = parse_hhmm(value.get("default_end_time"), DEFAULT_END_TIME)
    if start >= end:
        return DEFAULT_START_TIME, DEFAULT_END_TIME
    return start, end

@router.get("/{key}")
async def get_config(key: str, db: Session = Depends(get_db)):
    item = db.query(SchedulerConfigDB).filter(SchedulerConfigDB.key == key).first()
    if not item:
        return {"key": key, "value": None}
    return {"key": item.key, "value": item.value_json}

@router.post("/save")
async def save_config(item: ConfigItem, db: Session = Depends(get_db)):
    db_item = db.query(SchedulerConfigDB).filter(SchedulerConfigDB.key == item.key).first()
    if db_item:
        db_item.value_json = item.value
    else:
        db_item = SchedulerConfigDB(key=item.key, value_json=item.value)
        db.add(db_item)

    db.commit()
    return {"status": "saved", "key": item.key}
