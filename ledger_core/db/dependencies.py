from typing import Generator

from sqlalchemy.orm import Session

from .session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Yield one ledger session per request.

    Ledger services commit or roll back their own unit of work, so the
    session is only closed here once the response is sent.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
