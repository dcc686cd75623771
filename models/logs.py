from sqlalchemy import Column, String, BigInteger, Integer, DateTime, Text, Boolean, Enum, Index
from sqlalchemy.dialects.postgresql import JSONB
from models.base import Base, LogLevel, utcnow


class IngestionLog(Base):
    """
    Structured ingestion event with a snapshot of the job's running counters.

    Written by IngestionLogger for every info/warn/error/success event.
    """
    __tablename__ = "ingestion_logs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    job_type = Column(String(100), nullable=False)
    level = Column(Enum(LogLevel, values_callable=lambda e: [m.value for m in e]), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONB, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    api_calls = Column(Integer, nullable=True)
    records_processed = Column(Integer, nullable=True)
    records_created = Column(Integer, nullable=True)
    records_updated = Column(Integer, nullable=True)
    errors = Column(Integer, nullable=True)
    duration_ms = Column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_ingestion_logs_job_type", "job_type", "timestamp"),
        Index("idx_ingestion_logs_level", "level", "timestamp"),
    )


class ApiIngestLog(Base):
    """Normalized audit record of one provider request, as seen by a job."""
    __tablename__ = "api_ingest_log"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    provider = Column(String(50), nullable=False)
    resource = Column(String(50), nullable=False)
    provider_params = Column(Text, nullable=True)
    ok = Column(Boolean, nullable=False)
    status_code = Column(Integer, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_api_ingest_provider_created", "provider", "created_at"),
        Index("idx_api_ingest_ok_created", "ok", "created_at"),
    )
