from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Float, Boolean, Index, text
from sqlalchemy.orm import relationship
from app.cores.db import Base
from sqlalchemy.sql import func

# Estados del ciclo de vida de la clase
BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"
BOOKING_COMPLETED = "completed"
BOOKING_DISPUTED = "disputed"

# Estados de pago
PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"

ACTIVE_SLOT_CONDITION = "status != 'cancelled'"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    # Serie recurrente (opcional)
    series_id = Column(String(50), nullable=True, index=True)
    series_index = Column(Integer, nullable=True)
    series_total = Column(Integer, nullable=True)

    tutor_id = Column(Integer, ForeignKey("tutors.id"), nullable=False, index=True)
    tutor_email = Column(String(120), nullable=False, index=True)
    tutor_name = Column(String(200), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_email = Column(String(120), nullable=False, index=True)

    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # "HH:MM" hora local del docente
    duration_minutes = Column(Integer, nullable=False, default=60)

    # Tarifa congelada al momento de reservar
    hourly_rate = Column(Float, nullable=False)
    payment_amount = Column(Float, nullable=False)
    is_trial = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default=BOOKING_CONFIRMED)
    payment_status = Column(String(20), nullable=False, default=PAYMENT_PENDING)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(120), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(String(120), nullable=True)
    disputed_at = Column(DateTime(timezone=True), nullable=True)
    disputed_by = Column(String(120), nullable=True)
    dispute_reason = Column(String(500), nullable=True)
    meeting_link = Column(String(500), nullable=True)
    meeting_link_added_at = Column(DateTime(timezone=True), nullable=True)

    # Campos para Stripe
    paid_at = Column(DateTime(timezone=True), nullable=True)
    stripe_session_id = Column(String(200), nullable=True)
    stripe_payment_intent_id = Column(String(200), nullable=True)

    # Recordatorios enviados
    reminder_24h_sent = Column(Boolean, nullable=False, default=False)
    reminder_1h_sent = Column(Boolean, nullable=False, default=False)

    # Token de concurrencia optimista: cada UPDATE exige la versión leída
    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    tutor = relationship("Tutor", backref="bookings")
    student = relationship("User", backref="bookings")

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        # Un solo booking activo por (docente, fecha, hora)
        Index(
            "ux_bookings_tutor_slot_active",
            "tutor_id", "date", "time",
            unique=True,
            sqlite_where=text(ACTIVE_SLOT_CONDITION),
            postgresql_where=text(ACTIVE_SLOT_CONDITION),
        ),
        Index("ix_bookings_status_payment_date", "status", "payment_status", "date"),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, tutor_id={self.tutor_id}, student_id={self.student_id}, date={self.date}, time={self.time}, status={self.status})>"
