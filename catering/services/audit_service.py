"""Append-only trail of back-office writes (who changed which booking, package, setting or user)."""
import json
import logging
import uuid
from typing import List

from sqlalchemy.orm import Session

from catering.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None):
    """Stage an audit row; the caller commits it together with (or right after) the change."""
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        # dates and Decimals in details are stored as their str()
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))
    logger.debug("audit %s %s/%s by=%s", action, entity_type, entity_id, actor_user_id)


def list_audit_logs(db: Session, entity_type: str = "", entity_id: str = "", limit: int = 100) -> List[AuditLog]:
    q = db.query(AuditLog)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        q = q.filter(AuditLog.entity_id == entity_id)
    return q.order_by(AuditLog.created_at.desc()).limit(min(max(limit, 1), 500)).all()


def audit_to_dict(a: AuditLog) -> dict:
    return {
        "id": a.id,
        "actorUserId": a.actor_user_id,
        "action": a.action,
        "entityType": a.entity_type,
        "entityId": a.entity_id,
        "details": json.loads(a.details_json or "{}"),
        "createdAt": a.created_at.isoformat() if a.created_at else None,
    }
