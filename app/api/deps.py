"""
Dependencies for trigger authentication, database sessions, and pipeline collaborators.

Collaborators (config resolver, sender, report job client) are provided
through dependencies so tests can swap them via ``app.dependency_overrides``.
"""
from datetime import datetime
from typing import Generator, Optional
from fastapi import HTTPException, status, Header
from sqlalchemy.orm import Session
import hmac
from app import config as app_config
from app import database
from app.services.config_resolver import ConfigResolver
from app.services.delivery import ResilientSender
from app.services.dispatcher import HttpReportJobClient, ReportJobClient, verify_trigger_secret
from app.services.email_transport import ResendTransport
from app.utils import get_logger
from app.utils.time import utc_now

logger = get_logger(__name__)

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session
    """
    db = database.SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_config_resolver() -> ConfigResolver:
    """Resolver bound to the application's storage handle."""
    return ConfigResolver(database.SessionLocal)

def get_resilient_sender() -> ResilientSender:
    return ResilientSender(ResendTransport())

def get_report_job_client() -> ReportJobClient:
    return HttpReportJobClient()

def get_current_time() -> datetime:
    """Current instant; overridden in tests to pin the regional calendar date."""
    return utc_now()

def _prefix(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return value[:10] + "..." if len(value) > 10 else value

def require_cron_secret(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[str]:
    """
    Validate the scheduler's shared secret.

    An unset CRON_SECRET disables the check. Returns the configured secret so
    it can be forwarded to the report sub-requests.

    Raises:
        HTTPException: 401 if a secret is configured and the header does not match
    """
    expected = app_config.CRON_SECRET
    if not verify_trigger_secret(expected, authorization):
        logger.warning(
            "Trigger authentication failed",
            provided_prefix=_prefix(authorization)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return expected

def check_admin_access(
    x_admin_key: Optional[str] = Header(None)
) -> bool:
    """
    Check if request has admin access (X-Admin-Key must equal ADMIN_API_KEY).
    With no ADMIN_API_KEY configured the admin endpoints stay closed.

    Raises:
        HTTPException: If admin key is missing or invalid
    """
    expected_admin_key = app_config.ADMIN_API_KEY

    if not expected_admin_key or not x_admin_key or not hmac.compare_digest(x_admin_key, expected_admin_key):
        logger.warning(
            "Admin access denied",
            provided_key=_prefix(x_admin_key)
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    logger.info("Admin access granted")
    return True
