# app/infra/notify/fcm_notifier.py
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, messaging

from app.domain.ports import NotifierPort

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "firebase-key.json")
FIREBASE_APP_NAME    = os.getenv("FIREBASE_APP_NAME", "expiry-tracker")

logger = logging.getLogger(__name__)


class FcmNotifier(NotifierPort):
    """
    Firebase Cloud Messaging transport.

    Initialization happens once in the constructor. If the service-account
    file is missing or invalid the notifier stays usable but `initialized`
    is False, and the expiry job skips its runs.
    """

    def __init__(self, cred_path: str = FIREBASE_CREDENTIALS, app_name: str = FIREBASE_APP_NAME):
        self.cred_path = cred_path
        self.app: Optional[Any] = None
        self.initialized = False
        try:
            try:
                self.app = firebase_admin.get_app(app_name)
            except ValueError:
                cred = credentials.Certificate(cred_path)
                self.app = firebase_admin.initialize_app(cred, name=app_name)
            self.initialized = True
            logger.info("Firebase Admin initialized (app=%s)", app_name)
        except Exception as e:
            logger.warning(
                "Firebase not initialized - notifications will not work (%s). "
                "Provide %s to enable push notifications.", e, cred_path,
            )

    async def send(self, token: str, title: str, body: str) -> None:
        if not self.initialized:
            raise RuntimeError("FCM transport not initialized")
        msg = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
        )
        # SDK call is blocking (HTTP); keep the event loop free
        await asyncio.to_thread(messaging.send, msg, False, self.app)
