"""
Running concurrency-checked updates on behalf of an HTTP request.
"""

from typing import Any, Dict, List, Mapping, Optional

from fastapi import HTTPException

from casedesk.concurrency.coordinator import ResolutionCoordinator
from casedesk.concurrency.errors import ConflictError, RecordNotFound, ValidationError
from casedesk.concurrency.models import Actor, StoredRecord, UpdateMeta
from casedesk.concurrency.presentation import present
from casedesk.config import get_config
from casedesk.logging_utils import get_logger

logger = get_logger(__name__)


def conflict_body(exc: ConflictError, coordinator: ResolutionCoordinator) -> Dict[str, Any]:
    """409 response body: raw details plus the ready-to-render diff."""
    presentation = present(
        exc.details,
        registry=coordinator.registry,
        empty_display=get_config().conflicts.empty_display,
    )
    return {
        "message": exc.details.message,
        "conflict": exc.details.to_dict(),
        "presentation": presentation.to_dict(),
    }


def validation_body(errors: List[Dict[str, str]]) -> Dict[str, Any]:
    return {"message": "Invalid update", "errors": errors}


def apply_update(
    coordinator: ResolutionCoordinator,
    record_id: str,
    payload: Mapping[str, Any],
    meta: UpdateMeta,
    actor: Optional[Actor],
) -> StoredRecord:
    """Submit an update and map every non-success outcome to an HTTPException."""
    try:
        return coordinator.submit_update(record_id, payload, meta, actor=actor)
    except ValidationError as exc:
        logger.info(f"[UPDATE] Rejected {coordinator.entity_type} {record_id}: {exc}")
        raise HTTPException(status_code=422, detail=validation_body(exc.errors))
    except RecordNotFound:
        raise HTTPException(status_code=404, detail=f"{coordinator.entity_type.capitalize()} not found")
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=conflict_body(exc, coordinator))
