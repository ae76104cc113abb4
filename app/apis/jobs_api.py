from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from app.schemas.jobs.job_schema import AutoCompleteResponse, ReminderResponse
from app.services.sessions.session_lifecycle_service import sweep_completions
from app.services.sessions.reminder_service import send_lesson_reminders
from app.apis.deps import get_db, job_secret_required
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/auto-complete", response_model=AutoCompleteResponse, dependencies=[Depends(job_secret_required)])
async def auto_completar_sesiones(db: AsyncSession = Depends(get_db)):
    """
    Lo dispara el scheduler externo. Completa las sesiones pagadas que terminaron hace más de 24 h.
    """
    sweep = await sweep_completions(db, datetime.now(timezone.utc))
    return {
        "success": True,
        "message": f"Auto-completed {sweep.completed} sessions",
        "data": {
            "cutoff": sweep.cutoff,
            "sessions_processed": sweep.processed,
            "sessions_completed": sweep.completed,
            "sessions_skipped": sweep.skipped,
            "sessions_failed": sweep.failed
        }
    }

@router.post("/lesson-reminders", response_model=ReminderResponse, dependencies=[Depends(job_secret_required)])
async def enviar_recordatorios(db: AsyncSession = Depends(get_db)):
    reminders = await send_lesson_reminders(db, datetime.now(timezone.utc))
    return {
        "success": True,
        "message": "Recordatorios procesados",
        "data": {
            "sent_24h": reminders.sent_24h,
            "sent_1h": reminders.sent_1h,
            "failed": reminders.failed
        }
    }
