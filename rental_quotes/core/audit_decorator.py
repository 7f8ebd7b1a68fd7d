import logging
from functools import wraps
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from rental_quotes.core.audit_log import log_audit
from rental_quotes.core.enums import AuditAction

logger = logging.getLogger(__name__)


def audit_log(action: AuditAction) -> Callable:
    """Record an audit entry after a successful mutating endpoint call."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)

            db: AsyncSession = kwargs.get("db")
            current_user = kwargs.get("current_user")

            if not db or not current_user:
                return result

            payload = None
            for key in ["payload", "data", "body"]:
                if key in kwargs:
                    payload = kwargs[key]
                    break

            resource_id = None
            for key in ["quote_id", "pricing_id"]:
                if key in kwargs:
                    resource_id = kwargs[key]
                    break
            if resource_id is None:
                resource_id = getattr(result, "id", None)

            await log_audit(db, int(current_user.id), action, payload, resource_id)
            return result

        return wrapper
    return decorator
