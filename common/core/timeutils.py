import time
from datetime import datetime, timezone
from typing import Optional


def epoch_now() -> int:
    """Current time in whole epoch seconds."""
    return int(time.time())


def resolve_now(now: Optional[int]) -> int:
    return epoch_now() if now is None else now


def epoch_to_datetime(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
