# exam_api/services/audit_log.py
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from exam_api.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record_audit_log(
    db: Session,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    actor_staff_user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    # 호출한 쪽 트랜잭션에 함께 기록 (롤백되면 같이 사라진다)
    entry = AuditLog(
        actor_staff_user_id=actor_staff_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata_json=metadata or {},
    )
    db.add(entry)
    logger.info("[AUDIT] %s %s=%s actor=%s", action, entity_type, entity_id, actor_staff_user_id)
    return entry
