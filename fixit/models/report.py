"""
Pydantic models for civic-issue reports, comments, flags and resolved records.
These models handle validation for requests and shape API responses.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum


class ReportStatus(str, Enum):
    """
    Live report states. Resolution moves the report into the archive,
    so RESOLVED is never stored on a live report.
    """
    AWAITING_APPROVAL = "awaiting-approval"
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class ReportCreate(BaseModel):
    """Fields a resident provides when submitting a report."""
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=5000)
    category: str = Field(..., max_length=100)
    location: str = Field(..., max_length=500, description="Free-text location")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_urgent: bool = False
    images: List[str] = Field(default_factory=list, description="Uploaded media URLs")
    videos: List[str] = Field(default_factory=list)

    class Config:
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "title": "Broken streetlight",
                "description": "Streetlight near the plaza has been out for a week.",
                "category": "Electricity",
                "location": "Rizal St., Poblacion",
                "latitude": 14.5995,
                "longitude": 120.9842,
                "is_urgent": False,
            }
        }


class ReportUpdate(BaseModel):
    """Owner edit of report content. Status is not editable here."""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_urgent: Optional[bool] = None
    images: Optional[List[str]] = None


class StatusUpdateRequest(BaseModel):
    # Plain string so out-of-enum values reach the workflow and fail as a domain ValidationError
    status: str


class RejectRequest(BaseModel):
    reasons: List[str] = Field(default_factory=list)


class FlagRequest(BaseModel):
    reason: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class RemovalRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)
    warning_message: Optional[str] = Field(None, max_length=1000)


class BatchRemoveRequest(BaseModel):
    report_ids: List[str]


class CommentRequest(BaseModel):
    text: str = Field(..., max_length=1000)


class CommentResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    user: str = ""
    f_name: str = ""
    l_name: str = ""
    email: str = ""
    barangay: str = ""
    municipality: str = ""
    profile_picture: str = ""
    text: str
    created_at: Optional[datetime] = None
    edited_at: Optional[datetime] = None


class FlagResponse(BaseModel):
    user_id: Optional[str] = None
    reason: str
    description: str = ""
    created_at: Optional[datetime] = None


class OwnerSummary(BaseModel):
    """Owner as resolved across the active and suspended user stores."""
    id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    profile_picture: Optional[str] = None
    suspended: bool = False


class ReportResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    owner: Optional[OwnerSummary] = None
    title: str
    description: str
    category: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geo_tagged: bool = False
    is_urgent: bool = False
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    flags: List[FlagResponse] = Field(default_factory=list)
    flag_count: int = 0
    status: ReportStatus
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResolvedReportResponse(BaseModel):
    id: str
    original_report_id: str
    user_id: Optional[str] = None
    owner: Optional[OwnerSummary] = None
    title: str
    description: str
    category: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_urgent: bool = False
    images: List[str] = Field(default_factory=list)
    original_images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    resolution_description: str
    proof_images: List[str]
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status: str = ReportStatus.RESOLVED.value


class ReportSummary(BaseModel):
    total: int
    awaiting_approval: int
    pending: int
    in_progress: int
    resolved: int


class ModerationResult(BaseModel):
    """Outcome of a moderator removal, including notification fan-out counts."""
    deleted_report: Dict
    owner_notified: bool
    flaggers_notified: int
    flaggers_total: int
    warning: Optional[str] = None


class BatchRemoveResult(BaseModel):
    deleted_count: int
    missing: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
