"""API request models for storefront control endpoints."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class CreateCustomerRequest(BaseModel):
    """Request to register a storefront customer via control API."""

    email: EmailStr = Field(..., description="Account email address")
    login: Optional[str] = Field(None, description="Login name (defaults to the email)")
    display_name: Optional[str] = Field(None, description="Display name")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane@example.com",
                "login": "jane",
                "display_name": "Jane Doe",
            }
        }
