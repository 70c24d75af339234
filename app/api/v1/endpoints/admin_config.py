"""
Admin configuration endpoints for email delivery overrides.

Stores key/value pairs in the system_config table. Values written here take
precedence over environment variables on the very next send.
"""
from datetime import datetime
from typing import Dict
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from app.api.deps import check_admin_access, get_config_resolver, get_current_time, get_db, get_resilient_sender
from app.config import CONFIG_KEY_API_KEY, DELIVERY_CONFIG_KEYS
from app.models.db import SystemConfig
from app.models.schemas.base import ResponseBase
from app.models.schemas.system_config import DeliveryConfigUpdate
from app.services.config_resolver import ConfigResolver
from app.services.delivery import ResilientSender
from app.services.errors import DeliveryNotConfiguredError
from app.services.report_mailer import build_test_message
from app.utils import get_logger, log_business_event

router = APIRouter(dependencies=[Depends(check_admin_access)])
logger = get_logger(__name__)

def mask_secret(value: str) -> str:
    """Show first 4 and last 4 chars of long secrets; fully mask short ones."""
    if len(value) > 10:
        return f"{value[:4]}{'•' * (len(value) - 8)}{value[-4:]}"
    return "•" * 8

def _read_config(db: Session) -> Dict[str, str]:
    rows = db.query(SystemConfig).filter(SystemConfig.config_key.in_(DELIVERY_CONFIG_KEYS)).all()
    result: Dict[str, str] = {}
    for row in rows:
        if row.config_key == CONFIG_KEY_API_KEY and row.config_value:
            result[row.config_key] = mask_secret(row.config_value)
        else:
            result[row.config_key] = row.config_value
    return result

@router.get("/", response_model=ResponseBase, summary="Read delivery config overrides")
async def get_config(db: Session = Depends(get_db)) -> ResponseBase:
    try:
        config = _read_config(db)
    except Exception as e:
        logger.error("Config read failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load configuration")
    return ResponseBase(success=True, data={"config": config})

@router.put("/", response_model=ResponseBase, summary="Update delivery config overrides")
async def update_config(
    update: DeliveryConfigUpdate,
    request: Request,
    db: Session = Depends(get_db)
) -> ResponseBase:
    changes = update.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No configuration values provided")

    existing = {
        row.config_key: row
        for row in db.query(SystemConfig).filter(SystemConfig.config_key.in_(list(changes))).all()
    }
    for key, value in changes.items():
        row = existing.get(key)
        if row is None:
            db.add(SystemConfig(config_key=key, config_value=value))
        else:
            row.config_value = value
    db.commit()

    log_business_event(
        event_type="delivery_config_updated",
        details={"keys": sorted(changes)},
        request_id=getattr(request.state, "request_id", None)
    )
    return ResponseBase(success=True, message="Configuration updated", data={"config": _read_config(db)})

@router.post("/test-email", response_model=ResponseBase, summary="Send a test email")
async def send_test_email(
    resolver: ConfigResolver = Depends(get_config_resolver),
    sender: ResilientSender = Depends(get_resilient_sender),
    now: datetime = Depends(get_current_time),
) -> ResponseBase:
    config = resolver.resolve()
    try:
        outcome = await sender.send(config, build_test_message(config, now))
    except DeliveryNotConfiguredError as e:
        logger.info("Test email rejected: delivery not configured", missing=e.missing)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email not configured. Set Admin Email and Resend API Key first."
        )

    if not outcome.sent:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=outcome.error or "Failed to send test email"
        )
    return ResponseBase(success=True, message="Test email sent", data={"sent": True, "attempts": outcome.attempts})
