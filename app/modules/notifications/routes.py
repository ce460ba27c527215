from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.schemas import (
    NotificationListResponse, NotificationResponse, PushTokenRegister, PushTokenResponse,
    MessageNotificationRequest, ProposalEvent
)
from app.modules.notifications.service import NotificationService
from app.modules.notifications.push_tokens import PushTokenService
from app.core.dependencies import (
    get_current_user_id, check_request_owner_or_admin, check_conversation_participant, is_admin
)
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_service_supabase)) -> NotificationService:
    return NotificationService(supabase)


def get_push_token_service(supabase: Client = Depends(get_service_supabase)) -> PushTokenService:
    return PushTokenService(supabase)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    """In-app notifications for the current user, newest first"""
    return service.list_notifications(user_data["id"], limit=limit)


@router.post("/read-all")
async def mark_all_as_read(
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    updated = service.mark_all_as_read(user_data["id"])
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    return service.mark_as_read(notification_id, user_data["id"])


@router.post("/push-tokens", response_model=PushTokenResponse, status_code=201)
async def register_push_token(
    token_data: PushTokenRegister,
    user_data: Dict = Depends(get_current_user_id),
    service: PushTokenService = Depends(get_push_token_service),
):
    """Register (or replace) the Expo push token of the current device platform"""
    return service.save_push_token(user_data["id"], token_data.token, token_data.platform)


@router.delete("/push-tokens/{platform}", status_code=204)
async def remove_push_token(
    platform: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PushTokenService = Depends(get_push_token_service),
):
    service.remove_push_token(user_data["id"], platform)
    return None


@router.post("/requests/{request_id}/notify", status_code=202)
async def renotify_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Re-run provider matching for an existing request (request owner or admin)"""
    request_row = check_request_owner_or_admin(request_id, user_data, supabase)
    background_tasks.add_task(
        service.notify_matching_providers,
        request_row["id"],
        request_row["category_id"],
        request_row["title"],
        request_row.get("location"),
        request_row["buyer_id"],
        request_row.get("budget_min") or 0,
        request_row.get("budget_max") or 0,
    )
    return {"message": "Provider notification scheduled", "request_id": request_id}


@router.post("/conversations/{conversation_id}/messages", status_code=202)
async def notify_message_recipient(
    conversation_id: str,
    body: MessageNotificationRequest,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Notify the other participant of a message the caller just sent"""
    conversation = check_conversation_participant(conversation_id, user_data, supabase)
    if user_data["id"] == conversation.get("buyer_id"):
        recipient_id = conversation.get("provider_id")
    else:
        recipient_id = conversation.get("buyer_id")
    sender_name = user_data.get("full_name") or (user_data.get("user_metadata") or {}).get("full_name")
    background_tasks.add_task(
        service.notify_new_message,
        conversation_id,
        recipient_id,
        sender_name,
        body.message,
        body.attachment_count,
    )
    return {"message": "Recipient notification scheduled", "recipient_id": recipient_id}


@router.post("/proposals/{proposal_id}", status_code=202)
async def notify_proposal_event(
    proposal_id: str,
    body: ProposalEvent,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    """
    In-app notifications for a proposal the caller just submitted (provider),
    or accepted / rejected (request owner or admin).
    """
    proposal = service.get_proposal(proposal_id)
    request_row = (proposal or {}).get("service_requests")
    if not proposal or not request_row:
        raise HTTPException(status_code=404, detail="Proposal not found")
    request_id = proposal["request_id"]
    request_title = request_row.get("title") or "your request"

    if body.event == "submitted":
        if proposal.get("provider_id") != user_data["id"]:
            raise HTTPException(status_code=403, detail="Only the proposal's provider can do this")
        background_tasks.add_task(
            service.notify_proposal_submitted, request_row["buyer_id"], request_id, request_title
        )
    else:
        if request_row.get("buyer_id") != user_data["id"] and not is_admin(user_data):
            raise HTTPException(status_code=403, detail="Only the request owner or an admin can do this")
        if body.event == "accepted":
            competitors = service.get_pending_competitors(request_id, proposal_id)
            background_tasks.add_task(
                service.notify_proposal_accepted, proposal["provider_id"], request_id, request_title, competitors
            )
        else:
            background_tasks.add_task(
                service.notify_proposal_rejected, proposal["provider_id"], request_id, request_title
            )
    return {"message": "Proposal notification scheduled", "proposal_id": proposal_id, "event": body.event}
