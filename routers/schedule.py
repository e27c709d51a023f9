from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from backend import RedisBackend, get_redis_backend
from database import get_db
from schemas.schedule import ScheduleSlot
from services.schedule import build_schedule

schedule_router = APIRouter(prefix="/schedule", tags=["schedule"])


@schedule_router.get("", response_model=list[ScheduleSlot])
def get_schedule(
    db: Session = Depends(get_db),
    store: RedisBackend = Depends(get_redis_backend),
):
    return build_schedule(db, store)
