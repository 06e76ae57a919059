"""
Push notifications through Firebase Cloud Messaging. Best-effort.

Authenticates with a service-account key through firebase-admin, which
refreshes the short-lived OAuth token on its own. The SDK call is blocking,
so it runs in a worker thread.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from app.core.config import settings
from app.services.delivery import DeliveryResult

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "mindcare-push"


class FcmPushSender:
    def __init__(self, credentials_path: Optional[str] = None, app: Any = None):
        self.credentials_path = (
            credentials_path if credentials_path is not None else settings.FIREBASE_CREDENTIALS_PATH
        )
        self._app = app

    @property
    def configured(self) -> bool:
        return self._app is not None or bool(self.credentials_path)

    def _firebase_app(self):
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
            except ValueError:
                self._app = firebase_admin.initialize_app(
                    credentials.Certificate(self.credentials_path), name=FIREBASE_APP_NAME,
                )
        return self._app

    async def send(self, device_token: str, title: str, body: str) -> DeliveryResult:
        if not self.configured:
            logger.debug("Push skipped, FCM not configured")
            return DeliveryResult.failure("FCM not configured")
        message = messaging.Message(
            token=device_token,
            notification=messaging.Notification(title=title, body=body),
        )
        try:
            message_id = await asyncio.to_thread(messaging.send, message, app=self._firebase_app())
        except (FirebaseError, ValueError, OSError) as exc:
            logger.warning("Push to %s... failed: %s", device_token[:12], exc)
            return DeliveryResult.failure(str(exc))
        logger.info("Push '%s' sent id=%s", title, message_id)
        return DeliveryResult.success()


_sender: Optional[FcmPushSender] = None


def get_push_sender() -> FcmPushSender:
    global _sender
    if _sender is None:
        _sender = FcmPushSender()
    return _sender
