from datetime import datetime, timezone, tzinfo
from typing import Optional
from fastapi import HTTPException, Query, status
from backend.configuration.config import Config
from backend.models.mod_booking import SUPPORTED_DURATIONS
from backend.services.svc_conflicts import load_timezone

def get_clock() -> datetime:
    """
    Current time as UTC timezone-aware datetime.
    Injected into routes so tests can pin "now".
    """
    return datetime.now(timezone.utc)

def get_timezone(
    tz: Optional[str] = Query(default=None, description="IANA timezone, e.g. America/New_York")
) -> tzinfo:
    """Resolve the caller's timezone, falling back to the configured default"""
    try:
        return load_timezone(tz or Config.DEFAULT_TIMEZONE)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_timezone", "message": str(e)}
        )

def get_duration(
    duration: int = Query(default=60, description="Session length in minutes (30, 60, 90 or 120)")
) -> int:
    """Validate a requested session length before it reaches slot or price computation"""
    if duration not in SUPPORTED_DURATIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "invalid_duration",
                "message": f"duration must be one of {', '.join(str(d) for d in SUPPORTED_DURATIONS)}"
            }
        )
    return duration
