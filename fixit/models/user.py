"""
User models for registration, admin listings and suspension.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class Reputation(BaseModel):
    points: int = 0
    level: str = "Newcomer"
    badges: List[str] = Field(default_factory=list)
    total_reports: int = 0
    verified_reports: int = 0
    resolved_reports: int = 0
    helpful_votes: int = 0


class UserCreate(BaseModel):
    """Self-registration profile. The id comes from the authenticated principal."""
    f_name: str = Field(..., min_length=1, max_length=100)
    l_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    barangay: Optional[str] = Field(None, max_length=100)
    municipality: Optional[str] = Field(None, max_length=100)
    contact: Optional[str] = Field(None, max_length=30)
    profile_picture: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    address: str = "No address provided"
    suspended: bool = False
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None
    suspended_by: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    reputation: Optional[Reputation] = None
    report_count: Optional[int] = None


class SuspendRequest(BaseModel):
    reason: str = Field("", max_length=1000)


class SuspensionResult(BaseModel):
    message: str
    user: UserResponse
    suspended_record_id: Optional[str] = None
    already_restored: bool = False


class UserStats(BaseModel):
    total_users: int
    active_users: int
    recently_active_users: int
    suspended_users: int
    total_reports: int
