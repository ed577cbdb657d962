"""
Service for delivering OTP messages through an HTTP SMS gateway.
"""
import logging
from typing import Optional

import httpx

from core.config import settings
from core.exceptions import SmsDeliveryError
from core.logging_config import mask_phone

logger = logging.getLogger(__name__)

OTP_MESSAGE_TEMPLATE = "Your MedLedger verification code is {code}. It expires in {minutes} minutes."


class SmsService:
    """Sends text messages via a generic JSON SMS gateway."""

    def __init__(
        self,
        gateway_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the SMS service.

        Args:
            gateway_url: Gateway endpoint. If empty, messages are not sent and a
                masked dispatch notice is logged instead (development mode).
            api_key: Bearer token for the gateway.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.gateway_url = settings.sms_gateway_url if gateway_url is None else gateway_url
        self.api_key = settings.sms_gateway_api_key if api_key is None else api_key
        self.timeout = timeout or settings.sms_gateway_timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.gateway_url)

    def send_otp(self, phone: str, code: str, ttl_seconds: int = 300) -> None:
        """
        Send an OTP message.

        Raises:
            SmsDeliveryError: If the gateway is unreachable or rejects the message.
        """
        message = OTP_MESSAGE_TEMPLATE.format(code=code, minutes=max(1, ttl_seconds // 60))
        self.send(phone, message)

    def send(self, phone: str, message: str) -> None:
        """
        Post ``{"to", "message"}`` to the gateway.

        The message body is never logged since it may carry a passcode.

        Raises:
            SmsDeliveryError: On transport errors or non-2xx responses.
        """
        if not self.is_configured:
            logger.info("SMS gateway not configured, message not sent", extra={"phone": mask_phone(phone)})
            return

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    self.gateway_url,
                    json={"to": phone, "message": message},
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "SMS gateway rejected message",
                extra={"phone": mask_phone(phone), "status_code": e.response.status_code},
            )
            raise SmsDeliveryError(status_code_upstream=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(
                "SMS gateway request failed",
                extra={"phone": mask_phone(phone), "error_type": type(e).__name__},
            )
            raise SmsDeliveryError() from e

        logger.info("SMS dispatched", extra={"phone": mask_phone(phone)})
