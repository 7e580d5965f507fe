"""
Failure normalization for M-Pesa operations.

Every failure path of every operation ends here, whatever shape it arrived in:

- transport failure without a response (connect error, timeout)
- HTTP error status, with or without a JSON body
- a 2xx body carrying a non-success ``output_ResponseCode``
- arguments rejected before anything is sent

Each path raises one ``MpesaError`` with the same fields, so callers can log
or re-present it without knowing where it came from.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, NoReturn, Optional

import httpx

from src.integrations.contracts.error_codes import (
    BUSINESS_ERROR_HTTP_STATUS,
    FALLBACK_CODE,
    FALLBACK_HTTP_STATUS,
    NETWORK_ERROR_DESCRIPTION,
    describe_code,
    is_success_code,
)
from src.integrations.contracts.payments import ArgumentIssue
from src.integrations.policy.response_wrappers import MpesaResponse, correlation_ids, utc_timestamp

logger = logging.getLogger(__name__)


class MpesaError(Exception):
    def __init__(
        self,
        *,
        code: str,
        description: str,
        http_status: int,
        transaction_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        third_party_reference: Optional[str] = None,
        operation: Optional[str] = None,
        details: Any = None,
    ) -> None:
        label = f" [{operation}]" if operation else ""
        super().__init__(f"M-Pesa API Error{label}: {description} (Code: {code})")
        self.code = code
        self.description = description
        self.http_status = http_status
        self.transaction_id = transaction_id
        self.conversation_id = conversation_id
        self.third_party_reference = third_party_reference
        self.operation = operation
        self.details = details

    def to_response(self) -> MpesaResponse:
        return MpesaResponse(
            status="error",
            message=self.description,
            code=self.code,
            http_status=self.http_status,
            transaction_id=self.transaction_id,
            conversation_id=self.conversation_id,
            third_party_reference=self.third_party_reference,
            timestamp=utc_timestamp(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.to_response().model_dump(exclude={"data"})


def raise_for_business_failure(raw: Dict[str, Any], operation: str) -> NoReturn:
    """2xx transport, non-success code: the gateway rejected the request."""
    _raise(_error_from_body(raw, http_status=BUSINESS_ERROR_HTTP_STATUS, operation=operation))


def raise_for_http_failure(
    response: httpx.Response,
    operation: str,
    cause: Optional[BaseException] = None,
) -> NoReturn:
    """A response arrived but is an HTTP error or not a JSON object."""
    body = parse_json_object(response)
    http_status = response.status_code if response.status_code >= 400 else FALLBACK_HTTP_STATUS

    if body is None:
        error = MpesaError(
            code=FALLBACK_CODE,
            description=describe_code(FALLBACK_CODE),
            http_status=http_status,
            operation=operation,
            details=response.text,
        )
    else:
        error = _error_from_body(body, http_status=http_status, operation=operation)

    _raise(error, cause)


def raise_for_transport_failure(exc: httpx.RequestError, operation: str) -> NoReturn:
    """No response at all: network failure or timeout."""
    error = MpesaError(
        code=FALLBACK_CODE,
        description=NETWORK_ERROR_DESCRIPTION,
        http_status=FALLBACK_HTTP_STATUS,
        operation=operation,
        details=str(exc) or exc.__class__.__name__,
    )
    _raise(error, exc)


def raise_for_invalid_arguments(issues: List[ArgumentIssue], operation: str) -> NoReturn:
    """Arguments failed local validation; nothing was sent."""
    code = issues[0].code
    _raise(MpesaError(
        code=code,
        description=describe_code(code),
        http_status=BUSINESS_ERROR_HTTP_STATUS,
        operation=operation,
        details=[issue.message for issue in issues],
    ))


def parse_json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _error_from_body(raw: Dict[str, Any], *, http_status: int, operation: str) -> MpesaError:
    code = raw.get("output_ResponseCode")
    if not isinstance(code, str) or not code.strip() or is_success_code(code):
        code = FALLBACK_CODE
    return MpesaError(
        code=code,
        description=describe_code(code, raw.get("output_ResponseDesc")),
        http_status=http_status,
        operation=operation,
        details=raw,
        **correlation_ids(raw),
    )


def _raise(error: MpesaError, cause: Optional[BaseException] = None) -> NoReturn:
    logger.warning(
        "[MPESA] %s failed code=%s http_status=%s transaction_id=%s",
        error.operation, error.code, error.http_status, error.transaction_id,
    )
    raise error from cause
