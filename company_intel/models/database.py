"""SQLAlchemy database models and setup."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Float,
    Text,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from company_intel.config import settings

Base = declarative_base()


class DBCache(Base):
    """HTTP response cache (SEC directory, submissions feeds, filing documents)."""

    __tablename__ = "cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(2000), unique=True, nullable=False, index=True)
    content = Column(Text)
    content_type = Column(String(100))
    fetched_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime)
    status_code = Column(Integer)

    __table_args__ = (Index("idx_cache_expires", "expires_at"),)


class DBEnrichment(Base):
    """Saved enrichment result."""

    __tablename__ = "enrichments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(500), nullable=False, index=True)
    company_name = Column(String(500))
    ticker = Column(String(20))
    success = Column(Boolean, default=True)
    error_message = Column(Text)
    processing_time = Column(Float, default=0.0)
    data = Column(Text)  # JSON blob of the EnrichmentRecord
    enriched_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("idx_enrichment_ticker", "ticker"),)


_session_factories: dict[str, sessionmaker] = {}


# Database initialization
def init_db(db_url: Optional[str] = None) -> sessionmaker:
    """Initialize database and return session maker."""
    url = db_url or settings.database_url
    if url not in _session_factories:
        engine = create_engine(url, echo=False)
        Base.metadata.create_all(engine)
        _session_factories[url] = sessionmaker(bind=engine)
    return _session_factories[url]


def get_session(db_url: Optional[str] = None) -> Session:
    """Get a new database session."""
    SessionLocal = init_db(db_url)
    return SessionLocal()
