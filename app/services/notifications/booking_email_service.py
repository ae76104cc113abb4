"""
Servicio de emails para notificaciones de reservas con información detallada
"""

from fastapi_mail import FastMail, MessageSchema, MessageType
import logging

from app.external.email_config import conf

logger = logging.getLogger(__name__)


def build_booking_details(booking) -> dict:
    return {
        "booking_id": booking.id,
        "date": booking.date.isoformat(),
        "time": booking.time,
        "duration_minutes": booking.duration_minutes,
        "tutor_name": booking.tutor_name,
        "amount": booking.payment_amount,
        "is_trial": booking.is_trial,
        "series_index": booking.series_index,
        "series_total": booking.series_total,
    }


async def deliver_email(recipients: list, subject: str, body: str) -> None:
    message = MessageSchema(
        subject=subject,
        recipients=recipients,
        body=body,
        subtype=MessageType.html
    )
    fm = FastMail(conf)
    await fm.send_message(message)


async def send_booking_confirmation_email(student_email: str, booking_details: dict) -> bool:
    """
    Enviar email de confirmación de reserva pagada al estudiante.
    Nunca lanza: el resultado solo indica si el correo salió.
    """
    try:
        subject = "Booking confirmed - your lesson is paid"

        series_line = ""
        if booking_details.get("series_total"):
            series_line = f"<p><strong>Lesson:</strong> {booking_details.get('series_index')} of {booking_details.get('series_total')}</p>"

        body = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #4CAF50;">Your booking is confirmed!</h2>

                <div style="background-color: #f9f9f9; padding: 15px; border-radius: 5px; margin: 20px 0;">
                    <h3 style="color: #333; margin-top: 0;">Booking details</h3>
                    <p><strong>Date:</strong> {booking_details.get('date')} {booking_details.get('time')}</p>
                    <p><strong>Duration:</strong> {booking_details.get('duration_minutes')} minutes</p>
                    <p><strong>Tutor:</strong> {booking_details.get('tutor_name')}</p>
                    <p><strong>Amount paid:</strong> ${booking_details.get('amount', 0):.2f}</p>
                    {series_line}
                </div>

                <p>Your tutor will share the meeting link before the lesson.</p>
            </div>
        </body>
        </html>
        """

        await deliver_email([student_email], subject, body)

        logger.info(f"✅ Email de confirmación enviado a {student_email}")
        return True

    except Exception as e:
        logger.error(f"❌ Error enviando email de confirmación: {str(e)}")
        return False


async def send_lesson_reminder_email(recipient_email: str, booking_details: dict, hours_before: int) -> bool:
    """Recordatorio de clase a 24 h o 1 h del inicio."""
    try:
        when = "tomorrow" if hours_before >= 24 else "in about an hour"
        subject = f"Reminder: your lesson starts {when}"

        body = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Your lesson starts {when}</h2>
                <p><strong>Date:</strong> {booking_details.get('date')} {booking_details.get('time')}</p>
                <p><strong>Tutor:</strong> {booking_details.get('tutor_name')}</p>
                <p><strong>Meeting link:</strong> {booking_details.get('meeting_link') or 'Pending'}</p>
            </div>
        </body>
        </html>
        """

        await deliver_email([recipient_email], subject, body)

        logger.info(f"⏰ Recordatorio de {hours_before}h enviado a {recipient_email}")
        return True

    except Exception as e:
        logger.error(f"❌ Error enviando recordatorio: {str(e)}")
        return False
