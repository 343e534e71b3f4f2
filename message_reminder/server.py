"""FastAPI server exposing the reminder operations."""

import logging
import time
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from .models import DelayUnit, Reminder
from .registry import ValidationError

logger = logging.getLogger(__name__)

SERVICE_NAME = "message-reminder"


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Log slow requests for debugging."""

    def __init__(self, app, config: Optional[dict] = None):
        super().__init__(app)
        self.config = config or {}
        server_config = self.config.get("server", {})
        self.slow_threshold = server_config.get("slow_request_threshold_seconds", 1.0)

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start

        if elapsed > self.slow_threshold:
            logger.warning(
                f"SLOW REQUEST: {request.method} {request.url.path} "
                f"took {elapsed:.2f}s"
            )

        return response


class CreateReminderRequest(BaseModel):
    """Request to create a reminder: either delay_ms, or amount + unit."""
    message: str
    delay_ms: Optional[int] = None
    amount: Optional[int] = None
    unit: str = "minutes"  # seconds, minutes, hours


class ReminderResponse(BaseModel):
    """A reminder as returned by the API."""
    id: str
    message: str
    due_at: int
    triggered: bool

    @classmethod
    def from_reminder(cls, reminder: Reminder) -> "ReminderResponse":
        return cls(**reminder.to_dict())


def resolve_delay_ms(request: CreateReminderRequest) -> int:
    """
    Work out the delay in milliseconds from a create request.

    Raises:
        ValidationError: If neither form is given or the unit is unknown
    """
    if request.delay_ms is not None:
        return request.delay_ms
    if request.amount is None:
        raise ValidationError("Either delay_ms or amount is required")
    try:
        unit = DelayUnit.parse(request.unit)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return request.amount * unit.value * 1000


def create_app(
    scheduler=None,
    config: Optional[dict] = None,
    lifespan=None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        scheduler: ReminderScheduler serving the requests
        config: Full application config dict
        lifespan: Optional ASGI lifespan context manager

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Message Reminder",
        description="One-shot timed reminders",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware, config=config)

    app.state.config = config or {}
    app.state.scheduler = scheduler

    def _require_scheduler():
        if not app.state.scheduler:
            raise HTTPException(status_code=503, detail="Reminder scheduler not configured")
        return app.state.scheduler

    @app.get("/")
    async def root():
        """Service status."""
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/health")
    async def health():
        """Health check with scheduler state."""
        scheduler = app.state.scheduler
        return {
            "status": "healthy" if scheduler and scheduler.running else "degraded",
            "scheduler_running": bool(scheduler and scheduler.running),
            "reminders": len(scheduler.list()) if scheduler else 0,
        }

    @app.post("/reminders", response_model=ReminderResponse, status_code=201)
    async def create_reminder(request: CreateReminderRequest):
        """Create a reminder."""
        scheduler = _require_scheduler()
        try:
            reminder = await scheduler.create(request.message, resolve_delay_ms(request))
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return ReminderResponse.from_reminder(reminder)

    @app.get("/reminders")
    async def list_reminders(status: Optional[Literal["active", "expired"]] = None):
        """List reminders, optionally only the active or expired ones."""
        scheduler = _require_scheduler()
        if status is None:
            reminders = scheduler.list()
        else:
            view = scheduler.partition()
            reminders = view.active if status == "active" else view.expired
        return {"reminders": [r.to_dict() for r in reminders]}

    @app.get("/reminders/partition")
    async def partition_reminders(now: Optional[int] = None):
        """Active/expired split as of ``now`` (epoch ms, default: current time)."""
        scheduler = _require_scheduler()
        at = scheduler.clock() if now is None else now
        result = scheduler.partition(at).to_dict()
        result["now"] = at
        return result

    @app.get("/reminders/{reminder_id}", response_model=ReminderResponse)
    async def get_reminder(reminder_id: str):
        """Get one reminder."""
        scheduler = _require_scheduler()
        reminder = scheduler.registry.get(reminder_id)
        if not reminder:
            raise HTTPException(status_code=404, detail="Reminder not found")
        return ReminderResponse.from_reminder(reminder)

    @app.delete("/reminders/{reminder_id}")
    async def delete_reminder(reminder_id: str):
        """Delete a reminder. Unknown ids are not an error."""
        scheduler = _require_scheduler()
        return {"deleted": scheduler.delete(reminder_id)}

    @app.post("/focus")
    async def focus_regained():
        """Host regained focus: run a catch-up tick now."""
        scheduler = _require_scheduler()
        triggered = await scheduler.on_focus_regained()
        return {"triggered": triggered}

    return app
