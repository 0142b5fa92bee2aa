"""
Caller identity produced by the authorization gate.
"""
from pydantic import BaseModel
from typing import Optional


class CallerIdentity(BaseModel):
    """Authenticated caller, as established by the Firebase token."""
    uid: str
    email: Optional[str] = None
