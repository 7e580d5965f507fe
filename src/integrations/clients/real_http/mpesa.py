"""
Real M-Pesa HTTP Client.

Talks to the Vodacom M-Pesa Mozambique gateway over HTTPS.

Usage:
- Build once per credential set; the bearer token is derived in the
  constructor and reused for every call
- Safe to share between concurrent tasks: no per-call state is kept on the client

Important:
- No retries. A timed-out call has an unknown outcome; use ``query`` to find out
  what happened before resending anything that moves money.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import httpx

from src.integrations.clients.real_http.operations import OPERATIONS, OperationSpec
from src.integrations.contracts.error_codes import is_success_code
from src.integrations.contracts.interfaces import (
    B2BArgs,
    B2CArgs,
    C2BArgs,
    MpesaGateway,
    OperationArgs,
    OperationKind,
    QueryArgs,
    ReversalArgs,
)
from src.integrations.contracts.payments import validate_operation_args
from src.integrations.policy.error_wrappers import (
    parse_json_object,
    raise_for_business_failure,
    raise_for_http_failure,
    raise_for_invalid_arguments,
    raise_for_transport_failure,
)
from src.integrations.policy.response_wrappers import (
    B2BResponseData,
    B2CResponseData,
    C2BResponseData,
    MpesaResponse,
    QueryResponseData,
    ReversalResponseData,
    normalize_success_response,
)
from src.utils.auth_token import format_public_key, generate_bearer_token
from src.utils.config_loader import MpesaConfig

logger = logging.getLogger(__name__)


class MpesaClient(MpesaGateway):
    def __init__(
        self,
        config: Union[MpesaConfig, Dict[str, Any]],
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config if isinstance(config, MpesaConfig) else MpesaConfig(**config)
        self._transport = transport
        self._token = generate_bearer_token(self.config.api_key, format_public_key(self.config.public_key))
        logger.info(
            "[MPESA] Client initialised host=%s env=%s timeout=%.1fs",
            self.config.api_host,
            self.config.env.value if self.config.env else "-",
            self.config.timeout,
        )

    async def c2b(self, args: C2BArgs) -> MpesaResponse[C2BResponseData]:
        return await self._execute(OPERATIONS[OperationKind.C2B], args)

    async def b2c(self, args: B2CArgs) -> MpesaResponse[B2CResponseData]:
        return await self._execute(OPERATIONS[OperationKind.B2C], args)

    async def b2b(self, args: B2BArgs) -> MpesaResponse[B2BResponseData]:
        return await self._execute(OPERATIONS[OperationKind.B2B], args)

    async def query(self, args: QueryArgs) -> MpesaResponse[QueryResponseData]:
        return await self._execute(OPERATIONS[OperationKind.QUERY], args)

    async def reversal(self, args: ReversalArgs) -> MpesaResponse[ReversalResponseData]:
        return await self._execute(OPERATIONS[OperationKind.REVERSAL], args)

    def _headers(self, spec: OperationSpec) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._token}",
            "Origin": self.config.origin,
        }
        if spec.send_api_key:
            headers["X-Api-Key"] = self.config.api_key
        return headers

    async def _execute(self, spec: OperationSpec, args: OperationArgs) -> MpesaResponse:
        issues = validate_operation_args(args)
        if issues:
            raise_for_invalid_arguments(issues, spec.label)

        payload = spec.build_payload(args, self.config)
        url = f"{self.config.base_url}{spec.path}"
        logger.info("[MPESA] %s request third_party_ref=%s", spec.label, args.third_party_reference)

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers(spec))
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise_for_http_failure(exc.response, spec.label, exc)
        except httpx.RequestError as exc:
            raise_for_transport_failure(exc, spec.label)

        body = parse_json_object(response)
        if body is None:
            raise_for_http_failure(response, spec.label)
        if not is_success_code(body.get("output_ResponseCode")):
            raise_for_business_failure(body, spec.label)

        result = normalize_success_response(body, spec.kind, args)
        logger.info(
            "[MPESA] %s succeeded transaction_id=%s conversation_id=%s",
            spec.label, result.transaction_id, result.conversation_id,
        )
        return result
