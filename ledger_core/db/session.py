from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ledger_core.core.config import get_settings

settings = get_settings()

engine = create_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)
