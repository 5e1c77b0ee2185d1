"""Pre-flight token exchange and wallet URL construction."""

from typing import Optional

import httpx
from pydantic import ValidationError

from .config import SettoConfig
from .errors import MalformedResponseError, NetworkError
from .logging_utils import get_logger
from .types import PaymentInfo, PaymentRequest
from .utils import build_query, percent_encode

logger = get_logger(__name__)

TOKEN_PATH = "/api/external/payment/token"
PAYMENT_PATH = "/api/external/payment"
WALLET_PATH = "/pay/wallet"


def effective_idp_token(config: SettoConfig, request: PaymentRequest) -> Optional[str]:
    """IdP token for this attempt; the request's token wins over the config's."""
    return request.idp_token or config.idp_token


def requires_exchange(config: SettoConfig, request: PaymentRequest) -> bool:
    """Whether a payment token must be obtained before opening the wallet."""
    return effective_idp_token(config, request) is not None


def build_direct_url(config: SettoConfig, request: PaymentRequest) -> str:
    """Wallet URL carrying the payment parameters in the query string.

    Used when there is no IdP token; the user logs in to Setto on the page.
    """
    query = build_query(
        [
            ("merchant_id", config.merchant_id),
            ("amount", request.amount),
            ("order_id", request.order_id),
            ("currency", request.currency),
            ("return_scheme", config.return_scheme),
        ]
    )
    return f"{config.base_url}{WALLET_PATH}?{query}"


def build_token_url(config: SettoConfig, payment_token: str) -> str:
    """Wallet URL carrying the payment token in the fragment.

    Fragments are not sent to servers, so the token stays out of access logs.
    """
    return f"{config.base_url}{WALLET_PATH}#pt={percent_encode(payment_token)}"


class TokenExchangeClient:
    """Talks to the Setto external payment API."""

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def exchange_token(self, config: SettoConfig, request: PaymentRequest) -> str:
        """Exchange the caller's payment intent for a single-use payment token.

        Single shot: no retry is attempted on failure.

        Raises:
            NetworkError: Transport failure or non-200 response.
            MalformedResponseError: Body is not JSON or lacks ``payment_token``.
        """
        body = {
            "merchant_id": config.merchant_id,
            "amount": request.amount,
            "idp_token": effective_idp_token(config, request),
        }
        if request.order_id is not None:
            body["order_id"] = request.order_id

        logger.debug("Requesting payment token")
        try:
            response = await self._http.post(f"{config.base_url}{TOKEN_PATH}", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Payment token request error: {e}")
            raise NetworkError("Network error") from e

        if response.status_code != 200:
            logger.error(f"Payment token request failed: {response.status_code}")
            raise NetworkError(
                f"Token request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("Token response is not JSON") from e

        token = data.get("payment_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise MalformedResponseError("Token response is missing payment_token")
        return token

    async def resolve_payment_url(self, config: SettoConfig, request: PaymentRequest) -> str:
        """Produce the URL to open in the browser for this attempt."""
        if not requires_exchange(config, request):
            url = build_direct_url(config, request)
            logger.debug(f"Opening payment with Setto login: {url}")
            return url

        token = await self.exchange_token(config, request)
        logger.debug("Opening payment with auto-login")
        return build_token_url(config, token)

    async def fetch_payment_info(self, config: SettoConfig, payment_id: str) -> PaymentInfo:
        """Query the server-side status of a payment.

        Raises:
            NetworkError: Transport failure or non-200 response.
            MalformedResponseError: Body is not JSON or lacks required fields.
        """
        url = f"{config.base_url}{PAYMENT_PATH}/{percent_encode(payment_id)}"
        try:
            response = await self._http.get(url, headers={"X-Merchant-ID": config.merchant_id})
        except httpx.HTTPError as e:
            logger.error(f"Payment status request error: {e}")
            raise NetworkError("Network error") from e

        if response.status_code != 200:
            logger.warning(f"Payment status request failed: {response.status_code}")
            raise NetworkError(
                f"HTTP error: {response.status_code}", status_code=response.status_code
            )

        try:
            return PaymentInfo.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Invalid payment status response: {e}") from e
