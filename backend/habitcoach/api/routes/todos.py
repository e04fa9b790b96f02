"""Daily todo completion routes."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from habitcoach.api.routes.plans import serialize_coach_status, serialize_instance
from habitcoach.api.schemas.plan import TodoToggleRequest, TodoToggleResponse
from habitcoach.core.context import bind_user
from habitcoach.db.deps import get_db
from habitcoach.observability.metrics import log_metric
from habitcoach.observability.tracing import trace
from habitcoach.services.completion_tracker import UnknownTaskInstanceError
from habitcoach.services.insights import coach_status
from habitcoach.services.todo_service import toggle_instance

router = APIRouter()


@router.patch("/todos/{instance_id}/toggle", response_model=TodoToggleResponse, tags=["todos"])
def toggle_todo(
    instance_id: str,
    payload: TodoToggleRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TodoToggleResponse:
    """Flip the completion flag of one task instance."""
    bind_user(payload.user_id)
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()
    try:
        with trace(
            "todo.toggle",
            metadata={"instance_id": instance_id},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            day = toggle_instance(db, instance_id, payload.user_id)
            db.commit()
    except UnknownTaskInstanceError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    except PermissionError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Todo does not belong to user")
    except Exception:
        db.rollback()
        raise

    toggled = next(item for item in day.instances if item.id == instance_id)
    log_metric("todo.toggle.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric("todo.toggle.completed", 1 if toggled.completed else 0, metadata={"instance_id": instance_id})
    log_metric("todo.toggle.latency_ms", (perf_counter() - start) * 1000, metadata={"instance_id": instance_id})

    return TodoToggleResponse(
        todo=serialize_instance(toggled),
        on_date=day.on_date,
        achievement_score=day.score,
        coach_status=serialize_coach_status(coach_status(day.score)),
        request_id=request_id or "",
    )
