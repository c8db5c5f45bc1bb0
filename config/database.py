from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from config.settings import settings

DATABASE_URL = settings.DATABASE_URL


def build_engine(url: str, echo: bool = False):
    """Create an engine with pooling suited to the backend behind `url`."""
    if url.startswith("sqlite"):
        # Repository calls run on threadpool workers
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        url,
        # Connection pooling settings
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=settings.DB_POOL_RECYCLE,
        # Only echo SQL queries in debug mode
        echo=echo,
        connect_args={
            "options": "-c timezone=utc"
        } if "postgresql" in url else {}
    )


engine = build_engine(DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
