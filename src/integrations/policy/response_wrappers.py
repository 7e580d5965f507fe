from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel

from src.integrations.contracts.error_codes import SUCCESS_CODE, describe_code, is_success_code
from src.integrations.contracts.interfaces import (
    B2BArgs,
    B2CArgs,
    C2BArgs,
    OperationArgs,
    OperationKind,
    QueryArgs,
    ReversalArgs,
)
from src.integrations.contracts.payments import format_amount


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class CorrelationData(BaseModel):
    transaction_id: str = ""
    conversation_id: str = ""
    third_party_reference: str = ""


class C2BResponseData(CorrelationData):
    amount: str
    customer_msisdn: str
    transaction_reference: str


class B2CResponseData(CorrelationData):
    amount: str
    customer_msisdn: str
    transaction_reference: str
    recipient_first_name: Optional[str] = None
    recipient_last_name: Optional[str] = None
    settlement_amount: Optional[str] = None


class B2BResponseData(CorrelationData):
    amount: str
    primary_party_code: str
    recipient_party_code: str
    transaction_reference: str
    settlement_amount: Optional[str] = None


class QueryResponseData(CorrelationData):
    query_reference: str
    transaction_status: Optional[str] = None
    payment_status_code: Optional[str] = None
    payment_status_desc: Optional[str] = None


class ReversalResponseData(CorrelationData):
    original_transaction_id: str
    reversal_amount: str


DataT = TypeVar("DataT")


class MpesaResponse(BaseModel, Generic[DataT]):
    """Envelope returned to callers for every operation outcome."""

    status: Literal["success", "error"]
    message: str
    data: Optional[DataT] = None
    code: Optional[str] = None
    http_status: Optional[int] = None
    transaction_id: Optional[str] = None
    conversation_id: Optional[str] = None
    third_party_reference: Optional[str] = None
    timestamp: str

    @property
    def ok(self) -> bool:
        return self.status == "success"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_success_response(
    raw: Dict[str, Any],
    kind: OperationKind,
    args: OperationArgs,
) -> MpesaResponse:
    """
    Turn an ``INS-0`` gateway body into the clean envelope for ``kind``.

    The success body does not echo every input, so amounts, MSISDNs and party
    codes come from the original ``args``.
    """
    code = _first_non_empty(raw, "output_ResponseCode")
    if not is_success_code(code):
        raise IntegrationResponseError(
            f"Refusing to normalize non-success response code {code!r} as success.",
            payload=raw,
        )

    correlation = _correlation_fields(raw, fallback_third_party_reference=getattr(args, "third_party_reference", None))
    data = _DATA_BUILDERS[kind](raw, args, correlation)

    return MpesaResponse(
        status="success",
        message=describe_code(SUCCESS_CODE, _first_non_empty(raw, "output_ResponseDesc")),
        data=data,
        code=SUCCESS_CODE,
        http_status=200,
        transaction_id=correlation["transaction_id"] or None,
        conversation_id=correlation["conversation_id"] or None,
        third_party_reference=correlation["third_party_reference"] or None,
        timestamp=utc_timestamp(),
    )


def correlation_ids(raw: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Correlation identifiers present in a raw body; absent ones are None."""
    return {
        "transaction_id": _first_non_empty(raw, "output_TransactionID"),
        "conversation_id": _first_non_empty(raw, "output_ConversationID"),
        "third_party_reference": _first_non_empty(raw, "output_ThirdPartyReference"),
    }


# ---------------------------------------------------------------------------
# Per-operation data builders
# ---------------------------------------------------------------------------

def _c2b_data(raw: Dict[str, Any], args: C2BArgs, correlation: Dict[str, str]) -> C2BResponseData:
    return C2BResponseData(
        **correlation,
        amount=format_amount(args.amount),
        customer_msisdn=args.number,
        transaction_reference=args.transaction_reference,
    )


def _b2c_data(raw: Dict[str, Any], args: B2CArgs, correlation: Dict[str, str]) -> B2CResponseData:
    return B2CResponseData(
        **correlation,
        amount=format_amount(args.amount),
        customer_msisdn=args.number,
        transaction_reference=args.transaction_reference,
        recipient_first_name=_first_non_empty(raw, "output_RecipientFirstName"),
        recipient_last_name=_first_non_empty(raw, "output_RecipientLastName"),
        settlement_amount=_first_non_empty(raw, "output_SettlementAmount"),
    )


def _b2b_data(raw: Dict[str, Any], args: B2BArgs, correlation: Dict[str, str]) -> B2BResponseData:
    return B2BResponseData(
        **correlation,
        amount=format_amount(args.amount),
        primary_party_code=args.primary_party_code,
        recipient_party_code=args.recipient_party_code,
        transaction_reference=args.transaction_reference,
        settlement_amount=_first_non_empty(raw, "output_SettlementAmount"),
    )


def _query_data(raw: Dict[str, Any], args: QueryArgs, correlation: Dict[str, str]) -> QueryResponseData:
    return QueryResponseData(
        **correlation,
        query_reference=args.query_reference,
        transaction_status=_first_non_empty(raw, "output_ResponseTransactionStatus"),
        payment_status_code=_first_non_empty(raw, "output_ResponsePaymentStatusCode"),
        payment_status_desc=_first_non_empty(raw, "output_ResponsePaymentStatusDesc"),
    )


def _reversal_data(raw: Dict[str, Any], args: ReversalArgs, correlation: Dict[str, str]) -> ReversalResponseData:
    return ReversalResponseData(
        **correlation,
        original_transaction_id=args.original_transaction_id,
        reversal_amount=format_amount(args.reversal_amount),
    )


_DATA_BUILDERS: Dict[OperationKind, Callable[..., BaseModel]] = {
    OperationKind.C2B: _c2b_data,
    OperationKind.B2C: _b2c_data,
    OperationKind.B2B: _b2b_data,
    OperationKind.QUERY: _query_data,
    OperationKind.REVERSAL: _reversal_data,
}


def _correlation_fields(raw: Dict[str, Any], *, fallback_third_party_reference: Optional[str]) -> Dict[str, str]:
    ids = correlation_ids(raw)
    return {
        "transaction_id": ids["transaction_id"] or "",
        "conversation_id": ids["conversation_id"] or "",
        "third_party_reference": ids["third_party_reference"] or fallback_third_party_reference or "",
    }


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return str(value) if not isinstance(value, str) else value
    return default
