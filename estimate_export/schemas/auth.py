"""Caller identity schemas.

Supabase access tokens identify the adjuster; the organization is resolved
later from the ``users`` table, never from the token.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class JWTClaims(BaseModel):
    """Verified claims of a Supabase access token."""

    sub: str = Field(..., description="Supabase user ID")
    email: EmailStr
    exp: int = Field(..., description="Expiry, unix seconds")
    iat: int = Field(..., description="Issue time, unix seconds")
    iss: str = Field(..., description="<SUPABASE_URL>/auth/v1")
    aud: Optional[str] = None
    role: str = "authenticated"
    user_metadata: Optional[Dict[str, Any]] = None


class CurrentUser(BaseModel):
    """Authenticated caller of the estimate endpoints."""

    id: str = Field(..., description="Supabase user ID, also the rate-limit identifier")
    email: EmailStr
    role: str = "user"
    full_name: Optional[str] = None
