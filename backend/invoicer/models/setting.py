"""
Key/value settings kept in the local store (sync markers and the like).
"""
from sqlalchemy import Column, String, DateTime
from datetime import datetime
from invoicer.db.database import Base


class Setting(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
