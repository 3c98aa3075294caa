"""
Database models for the lead intake service.
"""

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class EnrolledUserRecord(Base):
    """One enrollment per unique email."""
    __tablename__ = "enrolled_users"

    id = Column(Text, primary_key=True)  # Framer submission id
    name = Column(Text, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    telephone = Column(String(32))
    location = Column(Text)
    newsletter = Column(Boolean)
    niveau_etudes = Column(Text)
    ecole = Column(Text)
    enrolled_at = Column(DateTime(timezone=True), default=func.now(), server_default=func.now(), index=True)
