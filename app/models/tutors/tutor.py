from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, true
from sqlalchemy.orm import relationship
from app.cores.db import Base
from sqlalchemy.sql import func


class Tutor(Base):
    __tablename__ = "tutors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    email = Column(String(120), nullable=False, index=True)
    hourly_rate = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", backref="tutor_profile")

    def __repr__(self):
        return f"<Tutor(id={self.id}, email={self.email}, hourly_rate={self.hourly_rate})>"
