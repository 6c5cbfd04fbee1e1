from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

_is_sqlite = settings.APP_DATABASE_DSN.startswith("sqlite")

engine = create_engine(
    settings.APP_DATABASE_DSN,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    # coupon_usages.coupon_id is ON DELETE RESTRICT
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if _is_sqlite:
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; each repository write commits on it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the promotions, coupons and coupon_usages tables if missing."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
