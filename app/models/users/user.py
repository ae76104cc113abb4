from sqlalchemy import Column, Integer, String, DateTime, Boolean, false
from app.cores.db import Base
from sqlalchemy.sql import func

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(120), unique=True, nullable=False, index=True)
    suspended = Column(Boolean, nullable=False, default=False, server_default=false())

    # Elegibilidad de clase de prueba: se marca una sola vez, al confirmarse el pago
    has_used_trial = Column(Boolean, nullable=False, default=False, server_default=false())
    trial_used_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


    def __repr__(self):
        return f"<User(email={self.email}, first_name={self.first_name}, last_name={self.last_name})>"
