"""
Pydantic model for the authenticated user.

Users are only ever resolved from a bearer token; the quote API does
not expose them.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    """User resolved by the token verifier."""

    id: int
    email: str = Field(..., example="user@example.com")
    full_name: Optional[str] = Field(None, example="Jeanne Martin")
    disabled: bool = False

    model_config = {
        "from_attributes": True,
    }
