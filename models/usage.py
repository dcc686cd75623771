from sqlalchemy import Column, String, BigInteger, Integer, DateTime, Text, Index
from sqlalchemy.dialects.postgresql import JSONB
from models.base import Base, utcnow


class ApiUsageDaily(Base):
    """
    Daily provider call counter.

    Design:
    - One row per (provider, date); date is the UTC calendar day "YYYY-MM-DD"
    - total_calls only ever grows within a day
    - Incremented with INSERT ... ON CONFLICT DO UPDATE so concurrent callers
      never lose an increment
    """
    __tablename__ = "api_usage_daily"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    provider = Column(String(50), nullable=False)
    date = Column(String(10), nullable=False)
    total_calls = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_usage_provider_date", "provider", "date", unique=True),
    )


class ApiCall(Base):
    """One row per provider request attempt, successful or not."""
    __tablename__ = "api_calls"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    provider = Column(String(50), nullable=False)
    resource = Column(String(50), nullable=False)
    response_time_ms = Column(Integer, nullable=False)
    status_code = Column(Integer, nullable=False)
    params = Column(JSONB, nullable=True)
    error = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    date = Column(String(10), nullable=False)

    __table_args__ = (
        Index("idx_api_calls_provider_date", "provider", "date"),
        Index("idx_api_calls_provider_resource_date", "provider", "resource", "date"),
    )
