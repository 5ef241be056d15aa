"""
Report endpoints for residents.

Residents submit reports (with optional photos), edit or retract their own
reports, flag reports and comment on them. Reads are open to any
authenticated caller.

Domain errors raised by the services are rendered by the FixItError handler
in main.py; routes only translate HTTP input into service calls.
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import List, Optional

from fixit.core.auth import Principal, get_current_principal
from fixit.models.report import (
    CommentRequest,
    CommentResponse,
    FlagRequest,
    ReportResponse,
    ReportSummary,
    ReportUpdate,
    ResolvedReportResponse,
)
from fixit.services.comment_service import CommentService, get_comment_service
from fixit.services.media_store import REPORT_FOLDER, MediaStore, get_media_store
from fixit.services.moderation_service import ModerationService, get_moderation_service
from fixit.services.report_lifecycle import ReportLifecycleManager, get_report_lifecycle_manager


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    location: str = Form(...),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    is_urgent: bool = Form(False),
    images: List[UploadFile] = File(default=[]),
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
    media_store: MediaStore = Depends(get_media_store),
):
    """
    Submit a new civic-issue report.

    Urgent reports skip the approval queue and start as pending; all others
    start as awaiting-approval. Coordinates are optional; the report is
    geo-tagged only when both are valid.
    """
    image_urls = [
        media_store.upload(image.file, image.filename, image.content_type, folder=REPORT_FOLDER)
        for image in images
        if image.filename
    ]
    payload = {
        "title": title,
        "description": description,
        "category": category,
        "location": location,
        "latitude": latitude,
        "longitude": longitude,
        "is_urgent": is_urgent,
        "images": image_urls,
    }
    return lifecycle.create(payload, principal.user_id)


@router.get("")
async def list_reports(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """List reports newest first. status=resolved lists the archive."""
    return lifecycle.list_by_status(status_filter)


@router.get("/mine", response_model=List[ReportResponse])
async def list_my_reports(
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return lifecycle.list_for_owner(principal.user_id)


@router.get("/summary", response_model=ReportSummary)
async def report_summary(
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """Counts per live status plus the resolved archive."""
    return lifecycle.summary()


@router.get("/resolved", response_model=List[ResolvedReportResponse])
async def list_resolved_reports(
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return lifecycle.list_resolved()


@router.get("/resolved/count")
async def count_resolved_reports(
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return {"count": lifecycle.count_resolved()}


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return lifecycle.get(report_id)


@router.put("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: str,
    changes: ReportUpdate,
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """Owner edit. Status changes go through the admin endpoints."""
    return lifecycle.update_content(report_id, principal.user_id, changes)


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    principal: Principal = Depends(get_current_principal),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """Owner retraction."""
    deleted = lifecycle.delete(report_id, principal.user_id)
    return {"message": "Report deleted successfully", "report_id": deleted["id"]}


@router.post("/{report_id}/flag", response_model=ReportResponse)
async def flag_report(
    report_id: str,
    request: FlagRequest,
    principal: Principal = Depends(get_current_principal),
    moderation: ModerationService = Depends(get_moderation_service),
):
    """Flag a report for moderator review. One flag per resident per report."""
    return moderation.flag(report_id, principal.user_id, request.reason, request.description)


# ----------------------------------------------------------------------
# Comments
# ----------------------------------------------------------------------
@router.get("/{report_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    report_id: str,
    principal: Principal = Depends(get_current_principal),
    comments: CommentService = Depends(get_comment_service),
):
    return comments.list_comments(report_id)


@router.post("/{report_id}/comments", response_model=List[CommentResponse], status_code=status.HTTP_201_CREATED)
async def add_comment(
    report_id: str,
    request: CommentRequest,
    principal: Principal = Depends(get_current_principal),
    comments: CommentService = Depends(get_comment_service),
):
    return comments.add_comment(report_id, principal.user_id, request.text)


@router.put("/{report_id}/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    report_id: str,
    comment_id: str,
    request: CommentRequest,
    principal: Principal = Depends(get_current_principal),
    comments: CommentService = Depends(get_comment_service),
):
    return comments.edit_comment(report_id, comment_id, principal.user_id, request.text)


@router.delete("/{report_id}/comments/{comment_id}", response_model=List[CommentResponse])
async def delete_comment(
    report_id: str,
    comment_id: str,
    principal: Principal = Depends(get_current_principal),
    comments: CommentService = Depends(get_comment_service),
):
    return comments.delete_comment(report_id, comment_id, principal.user_id)
