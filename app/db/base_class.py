from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    # Python-side timestamps keep microsecond ordering on SQLite
    return datetime.now(timezone.utc)
