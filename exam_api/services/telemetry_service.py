# exam_api/services/telemetry_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from exam_api.models.attempts import AttemptItem
from exam_api.models.enums import AttemptStatus, TelemetryEventType
from exam_api.models.telemetry import AttemptItemEvent, AttemptItemMetric
from exam_api.services.attempt_state import load_attempt, require_status
from exam_api.services.candidate_auth import authorize_candidate_access
from exam_api.services.errors import NotFoundError
from exam_api.services.telemetry_metrics import (
    AttemptItemMetrics,
    TelemetryEvent,
    compute_attempt_item_metrics,
)

logger = logging.getLogger(__name__)


def server_now() -> datetime:
    # 집계 기준 시각. 클라이언트 시계는 신뢰하지 않는다
    return datetime.now(timezone.utc)


def recompute_item_metrics(db: Session, attempt_item_id: int) -> AttemptItemMetrics:
    """이벤트 로그 전체로부터 지표를 다시 계산해 upsert 한다."""
    rows = (
        db.query(AttemptItemEvent.event_type, AttemptItemEvent.server_time)
        .filter(AttemptItemEvent.attempt_item_id == attempt_item_id)
        .order_by(AttemptItemEvent.server_time, AttemptItemEvent.id)
        .all()
    )
    metrics = compute_attempt_item_metrics(
        TelemetryEvent(event_type=row.event_type, server_time=row.server_time) for row in rows
    )

    metric = db.get(AttemptItemMetric, attempt_item_id)
    if metric is None:
        metric = AttemptItemMetric(attempt_item_id=attempt_item_id)
        db.add(metric)

    metric.observed_seconds = metrics.observed_seconds
    metric.active_seconds = metrics.active_seconds
    metric.view_count = metrics.view_count
    metric.answer_change_count = metrics.answer_change_count
    metric.computed_at = server_now()
    db.flush()
    return metrics


def record_telemetry(
    db: Session,
    attempt_id: int,
    event_type: TelemetryEventType,
    attempt_item_id: Optional[int] = None,
    client_time: Optional[datetime] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Tuple[Optional[int], Optional[AttemptItemMetrics]]:
    # 잠금 없이 읽는다. 계측은 답안/타이머/잠금 처리를 기다리게 하지 않는다
    attempt = load_attempt(db, attempt_id=attempt_id)
    require_status(attempt, AttemptStatus.IN_PROGRESS)

    if attempt_item_id is not None:
        item = db.get(AttemptItem, attempt_item_id)
        if item is None or item.attempt_id != attempt.id:
            raise NotFoundError("attempt_item_not_found")

    db.add(AttemptItemEvent(
        attempt_id=attempt.id,
        attempt_item_id=attempt_item_id,
        event_type=TelemetryEventType(event_type),
        server_time=server_now(),
        client_time=client_time,
        metadata_json=metadata or {},  # 해석하지 않고 그대로 저장
    ))
    db.flush()

    logger.debug(
        "[TELEMETRY] attempt_id=%s item_id=%s event=%s", attempt.id, attempt_item_id, event_type,
    )

    # 문항과 무관한 이벤트(HEARTBEAT 등)는 저장만 한다
    if attempt_item_id is None:
        return None, None

    return attempt_item_id, recompute_item_metrics(db, attempt_item_id)


def submit_telemetry(
    db: Session,
    ticket_code: str,
    pin: str,
    event_type: TelemetryEventType,
    attempt_item_id: Optional[int] = None,
    client_time: Optional[datetime] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Tuple[Optional[int], Optional[AttemptItemMetrics]]:
    auth = authorize_candidate_access(db, ticket_code, pin)
    attempt = load_attempt(db, ticket_id=auth.ticket_id)
    return record_telemetry(db, attempt.id, event_type, attempt_item_id, client_time, metadata)
