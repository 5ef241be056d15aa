"""
Admin endpoints - review, resolution, moderation and user suspension.

Every route depends on require_admin, so non-administrators are rejected
with 403 before any service or storage call. The services check the role
again; routes are not the only callers.

SCOPE OF ADMIN:
✅ Approve / reject reports awaiting approval
✅ Move reviewed reports between pending and in-progress
✅ Verify reports and resolve them with proof media
✅ Act on community flags (dismiss, remove, batch remove)
✅ Suspend and reinstate residents

❌ NOT edit report content (owners do that)
❌ NOT create reports on behalf of residents
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional

from fixit.core.auth import Principal, require_admin
from fixit.models.report import (
    BatchRemoveRequest,
    BatchRemoveResult,
    ModerationResult,
    RejectRequest,
    RemovalRequest,
    ReportResponse,
    ReportStatus,
    ResolvedReportResponse,
    StatusUpdateRequest,
)
from fixit.models.user import SuspendRequest, SuspensionResult, UserResponse, UserStats
from fixit.services.media_store import PROOF_FOLDER, MediaStore, get_media_store
from fixit.services.moderation_service import ModerationService, get_moderation_service
from fixit.services.report_lifecycle import ReportLifecycleManager, get_report_lifecycle_manager
from fixit.services.suspension_service import UserSuspensionManager, get_suspension_manager
from fixit.services.user_service import UserService, get_user_service


router = APIRouter(prefix="/admin", tags=["Admin"])


# ----------------------------------------------------------------------
# Report review
# ----------------------------------------------------------------------
@router.get("/reports/awaiting-approval", response_model=List[ReportResponse])
async def list_awaiting_approval(
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """Approval queue, newest first."""
    return lifecycle.list_by_status(ReportStatus.AWAITING_APPROVAL.value)


@router.get("/reports/flagged", response_model=List[ReportResponse])
async def list_flagged_reports(
    principal: Principal = Depends(require_admin),
    moderation: ModerationService = Depends(get_moderation_service),
):
    """Reports with at least one flag, most recently flagged first."""
    return moderation.list_flagged()


@router.post("/reports/batch-delete", response_model=BatchRemoveResult)
async def batch_delete_reports(
    request: BatchRemoveRequest,
    principal: Principal = Depends(require_admin),
    moderation: ModerationService = Depends(get_moderation_service),
):
    """Delete many reports at once. No notifications are sent."""
    return moderation.batch_remove(principal, request.report_ids)


@router.post("/reports/{report_id}/approve", response_model=ReportResponse)
async def approve_report(
    report_id: str,
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return lifecycle.approve(principal, report_id)


@router.post("/reports/{report_id}/reject")
async def reject_report(
    report_id: str,
    request: RejectRequest,
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """Reject and permanently delete a report awaiting approval."""
    rejected = lifecycle.reject(principal, report_id, request.reasons)
    return {"message": "Report rejected and deleted", "report_id": rejected["id"]}


@router.patch("/reports/{report_id}/status", response_model=ReportResponse)
async def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    """
    Set a reviewed report to pending or in-progress.

    Resolving requires proof media; use POST /admin/reports/{id}/resolve.
    """
    return lifecycle.update_status(principal, report_id, request.status)


@router.post("/reports/{report_id}/verify", response_model=ReportResponse)
async def verify_report(
    report_id: str,
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
):
    return lifecycle.verify(principal, report_id)


@router.post("/reports/{report_id}/resolve", response_model=ResolvedReportResponse)
async def resolve_report(
    report_id: str,
    resolution_description: str = Form(""),
    proof_urls: List[str] = Form(default=[]),
    proof_images: List[UploadFile] = File(default=[]),
    principal: Principal = Depends(require_admin),
    lifecycle: ReportLifecycleManager = Depends(get_report_lifecycle_manager),
    media_store: MediaStore = Depends(get_media_store),
):
    """
    Resolve a report with proof of the fix.

    Proof may be uploaded files, already-hosted URLs, or both. At least one
    is required. The report moves to the resolved archive.
    """
    uploaded = [
        media_store.upload(image.file, image.filename, image.content_type, folder=PROOF_FOLDER)
        for image in proof_images
        if image.filename
    ]
    return lifecycle.resolve(principal, report_id, resolution_description, list(proof_urls) + uploaded)


# ----------------------------------------------------------------------
# Moderation
# ----------------------------------------------------------------------
@router.delete("/reports/{report_id}/flags/{user_id}", response_model=ReportResponse)
async def dismiss_flag(
    report_id: str,
    user_id: str,
    principal: Principal = Depends(require_admin),
    moderation: ModerationService = Depends(get_moderation_service),
):
    return moderation.dismiss_flag(principal, report_id, user_id)


@router.delete("/reports/{report_id}/flags", response_model=ReportResponse)
async def dismiss_all_flags(
    report_id: str,
    principal: Principal = Depends(require_admin),
    moderation: ModerationService = Depends(get_moderation_service),
):
    return moderation.dismiss_all_flags(principal, report_id)


@router.delete("/reports/{report_id}", response_model=ModerationResult)
async def remove_report(
    report_id: str,
    request: Optional[RemovalRequest] = None,
    principal: Principal = Depends(require_admin),
    moderation: ModerationService = Depends(get_moderation_service),
):
    """Moderator removal. The owner (optionally warned) and every flagger are notified."""
    if request is None:
        return moderation.moderator_remove(principal, report_id)
    return moderation.moderator_remove(principal, report_id, request.reason, request.warning_message)


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
@router.get("/users", response_model=List[UserResponse])
async def list_users(
    principal: Principal = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Active and suspended users; suspended users keep their original id."""
    return users.list_all_users()


@router.get("/users/stats", response_model=UserStats)
async def user_stats(
    principal: Principal = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.user_stats()


@router.get("/users/suspended", response_model=List[UserResponse])
async def list_suspended_users(
    principal: Principal = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.list_suspended()


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    principal: Principal = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.get_user_details(user_id)


@router.post("/users/{user_id}/suspend", response_model=SuspensionResult)
async def suspend_user(
    user_id: str,
    request: Optional[SuspendRequest] = None,
    principal: Principal = Depends(require_admin),
    suspensions: UserSuspensionManager = Depends(get_suspension_manager),
):
    reason = request.reason if request else None
    return suspensions.suspend(principal, user_id, reason)


@router.post("/users/{user_id}/unsuspend", response_model=SuspensionResult)
async def unsuspend_user(
    user_id: str,
    principal: Principal = Depends(require_admin),
    suspensions: UserSuspensionManager = Depends(get_suspension_manager),
):
    """user_id may be the original user id or the suspended record id."""
    return suspensions.unsuspend(principal, user_id)
