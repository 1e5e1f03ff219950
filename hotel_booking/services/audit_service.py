import json
from decimal import Decimal
from sqlalchemy.orm import Session
from hotel_booking.models.audit_log import AuditLog

def log_audit(db: Session, actor_id: str | None, action: str, entity_type: str, entity_id, details: dict | None = None):
    db.add(AuditLog(
        actor_id=actor_id or "system",
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        # Decimal and date values are stored as their string form
        details_json=json.dumps(details or {}, ensure_ascii=False, default=_json_default),
    ))


def _json_default(v):
    if isinstance(v, Decimal):
        return str(v)
    if hasattr(v, "isoformat"):
        return v.isoformat()
    raise TypeError(f"not JSON serializable: {type(v).__name__}")
