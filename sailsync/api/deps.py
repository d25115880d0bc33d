"""
FastAPI dependencies (DB session, settings, club-local today)
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import Depends

from sailsync.config import Settings, get_settings
from sailsync.infrastructure.db.session import get_db as _get_db


# Re-export get_db for the routers
get_db = _get_db


def get_app_settings() -> Settings:
    return get_settings()


def get_today(settings: Settings = Depends(get_app_settings)) -> date:
    """
    Today in the club's timezone

    Usage:
        @router.get("/hub")
        def hub(today: date = Depends(get_today)):
            ...
    """
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()
