"""
Phone verification providers (SMS one-time codes)
"""

import logging
from typing import Dict, Any, Optional

import httpx

from fanleague.core.config import settings

# Configure logging
logger = logging.getLogger(__name__)

APPROVED = "approved"
PENDING = "pending"


class VerificationProviderError(Exception):
    """Raised when the verification provider cannot be reached or rejects the request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class VerificationProvider:
    """Base verification provider interface"""

    async def send(self, phone_number: str) -> str:
        """
        Send a verification code to a phone number.

        Args:
            phone_number: Full international number, e.g. +15551112222

        Returns:
            Provider status string ("pending" on success)
        """
        raise NotImplementedError

    async def check(self, phone_number: str, code: str) -> str:
        """
        Check a code submitted for a phone number.

        Args:
            phone_number: Full international number
            code: Code entered by the user

        Returns:
            Provider status string ("approved" when the code matches)
        """
        raise NotImplementedError


class MockVerificationProvider(VerificationProvider):
    """Mock provider for testing and development: one fixed code for every number"""

    def __init__(self, code: Optional[str] = None):
        self.code = code or settings.mock_verification_code
        self.sent: Dict[str, int] = {}

    async def send(self, phone_number: str) -> str:
        logger.info(f"Mock verification code sent to {phone_number}")
        self.sent[phone_number] = self.sent.get(phone_number, 0) + 1
        return PENDING

    async def check(self, phone_number: str, code: str) -> str:
        logger.info(f"Mock verification check for {phone_number}")
        return APPROVED if code == self.code else PENDING


class TwilioVerifyProvider(VerificationProvider):
    """Twilio Verify v2 provider"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        service_sid: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.service_sid = service_sid or settings.twilio_verify_service_sid
        self.base_url = (base_url or settings.twilio_verify_base_url).rstrip("/")
        self.timeout = timeout or settings.twilio_timeout_seconds
        self.transport = transport

    def _service_url(self, resource: str) -> str:
        return f"{self.base_url}/Services/{self.service_sid}/{resource}"

    async def _post(self, resource: str, data: Dict[str, str]) -> Dict[str, Any]:
        if not (self.account_sid and self.auth_token and self.service_sid):
            raise VerificationProviderError("Twilio Verify credentials are not configured")

        try:
            async with httpx.AsyncClient(
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
                transport=self.transport
            ) as client:
                response = await client.post(self._service_url(resource), data=data)
        except httpx.HTTPError as e:
            logger.error(f"Twilio Verify request to {resource} failed: {e}")
            raise VerificationProviderError(f"Verification service unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 400:
            message = payload.get("message") or response.text or "Verification service error"
            logger.error(f"Twilio Verify {resource} returned {response.status_code}: {message}")
            raise VerificationProviderError(message, status_code=response.status_code)

        return payload

    async def send(self, phone_number: str) -> str:
        payload = await self._post("Verifications", {"To": phone_number, "Channel": "sms"})
        return payload.get("status", PENDING)

    async def check(self, phone_number: str, code: str) -> str:
        payload = await self._post("VerificationCheck", {"To": phone_number, "Code": code})
        return payload.get("status", PENDING)


# Global provider instance
_provider = None


def get_verification_provider() -> VerificationProvider:
    """Get the configured verification provider"""
    global _provider
    if _provider is None:
        if settings.verification_provider == "mock":
            _provider = MockVerificationProvider()
        else:
            _provider = TwilioVerifyProvider()
        logger.info(f"Using verification provider: {type(_provider).__name__}")
    return _provider
