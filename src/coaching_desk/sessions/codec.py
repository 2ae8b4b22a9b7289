"""Signed session cookie codec.

The payload is plain JSON (userId, managementId, email, role) wrapped in an
itsdangerous timed signature, so clients can read but not forge it.
"""

from __future__ import annotations

import logging
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from ..core.constants import SESSION_MAX_AGE_SECONDS, SESSION_SALT
from .model import Session

logger = logging.getLogger(__name__)


class SessionCodec:
    def __init__(self, secret_key: str, *, max_age: int = SESSION_MAX_AGE_SECONDS):
        if not secret_key:
            raise ValueError("secret_key is required to sign sessions")
        self._serializer = URLSafeTimedSerializer(secret_key, salt=SESSION_SALT)
        self._max_age = int(max_age)

    @property
    def max_age(self) -> int:
        return self._max_age

    def encode(self, session: Session) -> str:
        return self._serializer.dumps(session.to_payload())

    def decode(self, token: Optional[str]) -> Optional[Session]:
        """Return the session, or None for missing/corrupt/expired/forged tokens."""
        if not token:
            return None

        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except BadData as e:
            logger.debug("Rejected session cookie: %s", e)
            return None

        try:
            return Session.from_payload(payload)
        except (TypeError, ValueError) as e:
            logger.debug("Rejected session payload: %s", e)
            return None
