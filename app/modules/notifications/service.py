from supabase import Client
from concurrent.futures import ThreadPoolExecutor
from app.config import settings
from app.core.errors import handle_supabase_error, supabase_error_status
from app.modules.notifications.schemas import (
    MatchedProvider, NotifyResult, NotificationResponse, NotificationListResponse
)
from app.modules.notifications.provider_matcher import ProviderMatcher
from app.modules.notifications.push_sender import ExpoPushClient
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

NEW_OPPORTUNITY = "new_opportunity"
NEW_MESSAGE = "new_message"
PROPOSAL = "proposal"
PROPOSAL_ACCEPTED = "proposal_accepted"
PROPOSAL_REJECTED = "proposal_rejected"

MESSAGE_PREVIEW_LENGTH = 100


def message_preview(text: Optional[str], attachment_count: int = 0) -> str:
    """Notification body for a chat message: its text cut to 100 chars, or an attachment summary"""
    content = (text or "").strip() or f"Sent {attachment_count} attachment(s)"
    if len(content) > MESSAGE_PREVIEW_LENGTH:
        return content[:MESSAGE_PREVIEW_LENGTH] + "..."
    return content


def format_budget(amount: Any) -> str:
    """Render a budget without a trailing .0 for whole amounts"""
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    return str(amount)


class NotificationService:
    def __init__(
        self,
        supabase: Client,
        push_client: Optional[ExpoPushClient] = None,
        matcher: Optional[ProviderMatcher] = None,
        max_workers: Optional[int] = None,
    ):
        self.supabase = supabase
        self.push_client = push_client or ExpoPushClient()
        self.matcher = matcher or ProviderMatcher(supabase)
        self.max_workers = max_workers or settings.notification_workers

    def save_notification_record(
        self,
        recipient_id: str,
        notification_type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Persist one in-app notification. Failures are logged, never raised."""
        try:
            self.supabase.table("notifications").insert({
                "user_id": recipient_id,
                "type": notification_type,
                "title": title,
                "body": body,
                "data": data or {},
                "read": False,
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Error saving notification record for {recipient_id}: {e}")
            return False

    def notify_providers_of_new_request(
        self,
        matched_providers: List[MatchedProvider],
        request_title: str,
        request_id: str,
        category_name: str,
        budget_min: Any,
        budget_max: Any,
    ) -> NotifyResult:
        """
        Push to every token of the matched providers, then store one in-app
        notification per provider. The two effects are independent: a failed
        push does not stop the inserts, and failed inserts are not retried.
        """
        if not matched_providers:
            return NotifyResult(notified_count=0)

        title = "New Service Request!"
        body = (
            f'"{request_title}" in {category_name} - '
            f"Budget: ₹{format_budget(budget_min)}-₹{format_budget(budget_max)}"
        )
        data = {
            "type": NEW_OPPORTUNITY,
            "requestId": request_id,
            "screen": "requests/detail",
        }

        all_tokens = [token for p in matched_providers for token in p.push_tokens]
        if all_tokens:
            try:
                self.push_client.send_push_notifications(all_tokens, title, body, data, NEW_OPPORTUNITY)
            except Exception as e:
                logger.error(f"Push delivery for request {request_id} failed: {e}")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(
                    self.save_notification_record, p.user_id, NEW_OPPORTUNITY, title, body, data
                )
                for p in matched_providers
            ]
            saved = sum(1 for f in futures if f.result())
        if saved < len(matched_providers):
            logger.warning(
                f"Stored {saved}/{len(matched_providers)} in-app notifications for request {request_id}"
            )

        return NotifyResult(notified_count=len(matched_providers))

    def notify_matching_providers(
        self,
        request_id: str,
        category_id: str,
        request_title: str,
        request_location: Optional[Any],
        buyer_id: str,
        budget_min: Any,
        budget_max: Any,
    ) -> NotifyResult:
        """Match providers for a newly created request and notify them. Returns 0 on any failure."""
        try:
            category_name = self._get_category_name(category_id)
            matched = self.matcher.find_matching_providers(
                request_id, category_id, request_location, buyer_id
            )
            logger.info(f'Found {len(matched)} matching providers for request "{request_title}"')
            if not matched:
                return NotifyResult(notified_count=0)

            for p in matched:
                dist = f"{p.distance}km away" if p.distance is not None else "online"
                tokens = "has push token" if p.push_tokens else "no push token"
                logger.debug(f"  - {p.full_name}: {dist}, {tokens}")

            result = self.notify_providers_of_new_request(
                matched, request_title, request_id, category_name, budget_min, budget_max
            )
            logger.info(f"Notified {result.notified_count} providers for request {request_id}")
            return result
        except Exception as e:
            logger.error(f"Error in notify_matching_providers for request {request_id}: {e}")
            return NotifyResult(notified_count=0)

    def _get_category_name(self, category_id: str) -> str:
        try:
            result = self.supabase.table("service_categories")\
                .select("name")\
                .eq("id", category_id)\
                .maybe_single()\
                .execute()
            if result and result.data and result.data.get("name"):
                return result.data["name"]
        except Exception as e:
            logger.warning(f"Could not load category {category_id}: {e}")
        return "Service"

    def get_push_tokens(self, user_id: str) -> List[str]:
        try:
            result = self.supabase.table("push_tokens")\
                .select("token")\
                .eq("user_id", user_id)\
                .execute()
            return [row["token"] for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error fetching push tokens for {user_id}: {e}")
            return []

    def notify_new_message(
        self,
        conversation_id: str,
        recipient_id: str,
        sender_name: Optional[str],
        message_text: Optional[str],
        attachment_count: int = 0,
    ) -> bool:
        """
        Push to the recipient's devices, then store a new_message row.
        Like the request fan-out, a failed push does not stop the insert. Never raises.
        """
        preview = message_preview(message_text, attachment_count)
        tokens = self.get_push_tokens(recipient_id)
        if tokens:
            try:
                self.push_client.send_push_notifications(
                    tokens,
                    f"New message from {sender_name or 'Someone'}",
                    preview,
                    {"type": NEW_MESSAGE, "conversationId": conversation_id, "screen": "messages/chat"},
                )
            except Exception as e:
                logger.error(f"Push delivery for conversation {conversation_id} failed: {e}")
        return self.save_notification_record(
            recipient_id, NEW_MESSAGE, "New Message", preview,
            {"type": NEW_MESSAGE, "conversationId": conversation_id},
        )

    def get_proposal(self, proposal_id: str) -> Optional[Dict[str, Any]]:
        """Proposal row with its request (id, title, buyer_id) embedded as service_requests"""
        try:
            result = self.supabase.table("proposals")\
                .select("id, request_id, provider_id, status, service_requests(id, title, buyer_id)")\
                .eq("id", proposal_id)\
                .maybe_single()\
                .execute()
            return result.data if result else None
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def get_pending_competitors(self, request_id: str, accepted_proposal_id: str) -> List[str]:
        """Providers whose proposals on the request are still pending, besides the accepted one"""
        try:
            result = self.supabase.table("proposals")\
                .select("id, provider_id")\
                .eq("request_id", request_id)\
                .eq("status", "pending")\
                .execute()
            return [
                row["provider_id"] for row in (result.data or [])
                if row.get("id") != accepted_proposal_id
            ]
        except Exception as e:
            logger.error(f"Error loading competing proposals for request {request_id}: {e}")
            return []

    def notify_proposal_submitted(self, buyer_id: str, request_id: str, request_title: str) -> bool:
        return self.save_notification_record(
            buyer_id, PROPOSAL, "New Proposal Received",
            f'A provider has submitted a proposal for "{request_title}"',
            {"type": PROPOSAL, "requestId": request_id},
        )

    def notify_proposal_accepted(
        self,
        provider_id: str,
        request_id: str,
        request_title: str,
        competitor_ids: Optional[List[str]] = None,
    ) -> int:
        """Tell the winner, then every other pending provider that the request was awarded. Returns rows saved."""
        saved = int(self.save_notification_record(
            provider_id, PROPOSAL_ACCEPTED, "Proposal Accepted!",
            f'Your proposal for "{request_title}" has been accepted! '
            "Check the request details for buyer contact info.",
            {"requestId": request_id},
        ))
        for competitor_id in competitor_ids or []:
            if competitor_id == provider_id:
                continue
            saved += int(self.save_notification_record(
                competitor_id, PROPOSAL_REJECTED, "Proposal Update",
                f'The request "{request_title}" has been awarded to another provider.',
                {"requestId": request_id},
            ))
        return saved

    def notify_proposal_rejected(self, provider_id: str, request_id: str, request_title: str) -> bool:
        return self.save_notification_record(
            provider_id, PROPOSAL_REJECTED, "Proposal Rejected",
            f'Your proposal for "{request_title}" was not selected.',
            {"requestId": request_id},
        )

    def list_notifications(self, user_id: str, limit: int = 50) -> NotificationListResponse:
        """Newest first, with unread count of the returned page"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            items = [NotificationResponse(**n) for n in (result.data or [])]
            return NotificationListResponse(
                notifications=items,
                unread_count=sum(1 for n in items if not n.read),
            )
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def mark_as_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def mark_all_as_read(self, user_id: str) -> int:
        """Returns number of notifications updated"""
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))
