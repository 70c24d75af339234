"""
Pydantic schemas for admin-editable delivery configuration.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, TypeAdapter, field_validator

_email_adapter = TypeAdapter(EmailStr)

class DeliveryConfigUpdate(BaseModel):
    """
    Overrides to upsert. Omitted fields are left unchanged; an empty string
    clears the override so the environment value applies again.
    """
    ADMIN_EMAIL: Optional[str] = Field(None, description="Report recipient")
    RESEND_API_KEY: Optional[str] = Field(None, description="Resend API key")
    RESEND_FROM_EMAIL: Optional[str] = Field(None, description="Sender address")

    @field_validator("ADMIN_EMAIL", "RESEND_FROM_EMAIL")
    @classmethod
    def _valid_email_or_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if v == "":
            return v
        return str(_email_adapter.validate_python(v))

    @field_validator("RESEND_API_KEY")
    @classmethod
    def _strip_key(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v
