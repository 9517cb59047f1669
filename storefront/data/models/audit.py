from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text
from datetime import datetime, timezone

from storefront.data.database import Base


class ApiLogModel(Base):
    __tablename__ = "api_log"

    id = Column(Integer, primary_key=True)
    endpoint = Column(String, nullable=False)
    method = Column(String, nullable=False)
    status_code = Column(Integer, nullable=False)
    response_time = Column(Numeric(10, 2), nullable=False)  # ms
    ip_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class AppErrorModel(Base):
    __tablename__ = "app_errors"

    id = Column(Integer, primary_key=True)
    error_message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=False)
    method_name = Column(String, nullable=False)
    level = Column(String, nullable=False, default="fatal")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
