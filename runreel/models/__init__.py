"""
SQLAlchemy Models Initialization
"""

from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from runreel.config.settings import settings

# Create engine
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

# Create base class for models
Base = declarative_base()

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Optional[Engine] = None):
    """
    Initialize database by creating all tables

    Args:
        bind: Engine to create tables on (defaults to the configured engine)
    """
    # Register models on Base.metadata
    from runreel.models import video_generation  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
