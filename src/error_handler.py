"""Error handling helpers for callers that prefer result envelopes over exceptions."""
from typing import Any, Awaitable, Dict
import logging

from src.integrations.contracts.error_codes import FALLBACK_CODE, FALLBACK_HTTP_STATUS, describe_code
from src.integrations.policy.error_wrappers import MpesaError
from src.integrations.policy.response_wrappers import MpesaResponse, utc_timestamp

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> MpesaResponse:
        if isinstance(exc, MpesaError):
            logger.info("M-Pesa call returned error code=%s context=%s", exc.code, context or {})
            return exc.to_response()

        logger.error("Unhandled exception in M-Pesa call: %s", exc, exc_info=True)
        return MpesaResponse(
            status="error",
            message=describe_code(FALLBACK_CODE),
            code=FALLBACK_CODE,
            http_status=FALLBACK_HTTP_STATUS,
            timestamp=utc_timestamp(),
        )

    async def capture(self, call: Awaitable[MpesaResponse], context: Dict[str, Any] = None) -> MpesaResponse:
        """Await a client call and return its envelope, success or error, without raising."""
        try:
            return await call
        except Exception as exc:
            return self.handle_exception(exc, context)
