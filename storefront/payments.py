import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from . import config
from .exceptions import PaymentConfigurationError, PaymentVerificationError
from .schemas import GatewayVerifyResponse

logger = logging.getLogger(__name__)


class PaystackVerifier:
    """Confirms a payment reference with the gateway's verify endpoint.

    `verify` answers True only when the gateway reports an overall success
    flag AND a transaction status of exactly "success". A declined,
    abandoned or pending transaction answers False. Transport errors,
    timeouts, non-2xx answers and unparseable bodies raise
    `PaymentVerificationError`; a missing or non-ASCII secret key raises
    `PaymentConfigurationError` before any request is made.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = config.DEFAULT_PAYSTACK_BASE_URL,
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, reference: str) -> GatewayVerifyResponse:
        if not self.secret_key:
            raise PaymentConfigurationError()
        if not self.secret_key.isascii():
            # HTTP header values must be ASCII
            raise PaymentConfigurationError(problem="contains non-ASCII characters")

        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PaymentVerificationError(reference, f"{type(e).__name__}: {e}") from e

        try:
            return GatewayVerifyResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise PaymentVerificationError(reference, "malformed gateway response") from e

    async def verify(self, reference: str) -> bool:
        body = await self.fetch(reference)
        if not body.succeeded:
            logger.info(
                "Payment %s not successful (status=%s, transaction=%s)",
                reference,
                body.status,
                body.data.status if body.data else None,
            )
        return body.succeeded


def verifier_from_settings(settings: config.Settings | None = None) -> PaystackVerifier:
    settings = settings or config.get_settings()
    return PaystackVerifier(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout=settings.paystack_timeout,
    )
