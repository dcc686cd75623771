from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for every audit timestamp."""
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================

class LogLevel(str, enum.Enum):
    """Ingestion log levels"""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    SUCCESS = "success"
    DEBUG = "debug"


class TopStatCategory(str, enum.Enum):
    """Ranked provider lists and the key each rank is stored under"""
    GOALS = "goals"
    ASSISTS = "assists"
    YELLOW_CARDS = "yellow_cards"
    RED_CARDS = "red_cards"


class RecordOutcomeType(str, enum.Enum):
    """Per-record result of an upsert attempt"""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"
