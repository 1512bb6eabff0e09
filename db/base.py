from datetime import datetime, UTC

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    # DateTime 컬럼은 DB 세션 타임존과 무관하게 naive UTC로 저장
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass
