"""
Newsletter Subscription Schemas
"""

from pydantic import BaseModel, EmailStr, Field, field_validator


class SubscriptionCreate(BaseModel):
    """Newsletter sign-up request."""

    email: EmailStr = Field(
        ...,
        description="Address to subscribe",
        examples=["reader@example.com"],
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class SubscriptionResponse(BaseModel):
    message: str = Field(default="Subscribed successfully")
    email: str
