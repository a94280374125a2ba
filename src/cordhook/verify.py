from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Mapping, Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .constants import SIGNATURE_HEADER, TIMESTAMP_HEADER
from .errors import ConfigError, InvalidSignature, MalformedPayload

logger = logging.getLogger(__name__)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            token = str(value).strip()
            return token or None
    return None


class RequestVerifier:
    """Authenticates interaction webhooks signed with the application's Ed25519 key.

    Verification is fail-closed: a request is either returned as a parsed
    payload or rejected with ``InvalidSignature`` / ``MalformedPayload``.
    """

    def __init__(
        self,
        public_key: str,
        *,
        max_timestamp_age_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        try:
            self._verify_key = VerifyKey(bytes.fromhex(public_key.strip()))
        except (ValueError, TypeError) as exc:
            raise ConfigError("Discord public key must be a 32-byte hex string") from exc
        self._max_timestamp_age_seconds = max_timestamp_age_seconds
        self._clock = clock

    def verify(self, headers: Mapping[str, str], body: bytes) -> dict[str, Any]:
        signature = _header(headers, SIGNATURE_HEADER)
        timestamp = _header(headers, TIMESTAMP_HEADER)
        if signature is None or timestamp is None:
            raise InvalidSignature("Missing signature headers")

        try:
            signature_bytes = bytes.fromhex(signature)
        except ValueError as exc:
            raise InvalidSignature("Signature is not valid hex") from exc

        try:
            self._verify_key.verify(timestamp.encode("utf-8") + body, signature_bytes)
        except (BadSignatureError, ValueError) as exc:
            raise InvalidSignature("Bad request signature") from exc

        self._check_timestamp(timestamp)
        return self._parse(body)

    def _check_timestamp(self, timestamp: str) -> None:
        if self._max_timestamp_age_seconds is None:
            return
        try:
            sent_at = int(timestamp)
        except ValueError as exc:
            raise InvalidSignature("Signature timestamp is not an integer") from exc
        skew = abs(self._clock() - sent_at)
        if skew > self._max_timestamp_age_seconds:
            logger.warning("Rejecting interaction with stale timestamp (skew=%.0fs)", skew)
            raise InvalidSignature("Signature timestamp outside allowed window")

    @staticmethod
    def _parse(body: bytes) -> dict[str, Any]:
        if not body or not body.strip():
            raise MalformedPayload("Request body is empty")
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedPayload("Request body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedPayload("Request body must be a JSON object")
        interaction_type = payload.get("type")
        if not isinstance(interaction_type, int) or isinstance(interaction_type, bool):
            raise MalformedPayload("Interaction payload is missing an integer type")
        return payload
