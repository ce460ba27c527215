"""
Expo push gateway client.
https://docs.expo.dev/push-notifications/sending-notifications/
"""
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence

import requests

from app.config import settings
from app.modules.notifications.schemas import PushMessage, PushSendResult, is_expo_push_token

logger = logging.getLogger(__name__)


def chunk_list(items: Sequence[Any], size: int) -> Iterator[List[Any]]:
    """Split a sequence into lists of at most `size` items"""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


class ExpoPushClient:
    def __init__(
        self,
        url: Optional[str] = None,
        access_token: Optional[str] = None,
        batch_size: Optional[int] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url or settings.expo_push_url
        self.access_token = access_token if access_token is not None else settings.expo_access_token
        self.batch_size = batch_size or settings.push_batch_size
        self.timeout = timeout or settings.push_timeout_seconds
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def build_messages(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        channel_id: Optional[str] = None,
    ) -> List[PushMessage]:
        return [
            PushMessage(
                to=token,
                title=title,
                body=body,
                data=data or {},
                channelId=channel_id or "default",
            )
            for token in tokens
            if is_expo_push_token(token)
        ]

    def send_push_notifications(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        channel_id: Optional[str] = None,
    ) -> PushSendResult:
        """
        Send one push per valid token, batched per Expo API limit.
        Failures are logged per batch and never raised; later batches are still sent.
        """
        result = PushSendResult()
        if not tokens:
            return result

        result.invalid_tokens = [t for t in tokens if not is_expo_push_token(t)]
        if result.invalid_tokens:
            logger.warning(f"Skipping {len(result.invalid_tokens)} malformed push token(s)")

        messages = self.build_messages(tokens, title, body, data, channel_id)
        if not messages:
            return result

        for chunk in chunk_list(messages, self.batch_size):
            payload = [m.model_dump() for m in chunk]
            try:
                response = self.session.post(
                    self.url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                body_json = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Error sending push notifications: {e}")
                result.failed += len(chunk)
                continue
            if not isinstance(body_json, dict):
                body_json = {}

            if body_json.get("errors"):
                logger.error(f"Expo push errors: {body_json['errors']}")

            tickets = body_json.get("data") or []
            if not isinstance(tickets, list):
                tickets = []
            result.tickets.extend(tickets)
            failures = [t for t in tickets if t.get("status") == "error"]
            if failures:
                logger.warning(f"Some push notifications failed: {failures}")
            if tickets:
                result.failed += len(failures)
                result.sent += len(tickets) - len(failures)
            elif body_json.get("errors"):
                result.failed += len(chunk)
            else:
                result.sent += len(chunk)

        return result
