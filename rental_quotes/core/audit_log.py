"""Audit logging utilities for database operations"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from rental_quotes.models.audit import Audit
from rental_quotes.core.enums import AuditAction
from rental_quotes.core.metrics import audit_logs_created
from rental_quotes.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Optional[Any] = None,
    resource_id: Optional[Any] = None,
) -> None:

    try:
        audit_record = Audit(
            user_id=int(user_id),
            action=str(action),
            resource_id=str(resource_id) if resource_id is not None else None,
            payload_hash=payload_hash(payload or {}),
        )

        db.add(audit_record)
        await db.commit()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        await db.rollback()
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)


async def log_login(
    db: AsyncSession,
    user_id: int,
    username: str
) -> None:
    await log_audit(db, user_id, AuditAction.LOGIN, {"username": username})
