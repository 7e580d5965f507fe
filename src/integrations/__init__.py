"""
Integrations layer.
This package contains all code used to communicate with the M-Pesa gateway:
- contracts: operation arguments, response codes, validation rules
- policy: response/error normalization into one envelope shape
- clients: the real HTTPS client and an in-memory mock

Key rule:
- Application code MUST NOT call the gateway directly.
- Use MpesaClient (or MpesaMockClient in development) through the MpesaGateway interface.
"""

from .contracts.interfaces import (
    B2BArgs,
    B2CArgs,
    C2BArgs,
    MpesaGateway,
    OperationKind,
    QueryArgs,
    ReversalArgs,
)
from .contracts.error_codes import MPESA_ERROR_MESSAGES, SUCCESS_CODE, describe_code
from .contracts.payments import format_amount, validate_operation_args
from .policy.error_wrappers import MpesaError
from .policy.response_wrappers import (
    B2BResponseData,
    B2CResponseData,
    C2BResponseData,
    MpesaResponse,
    QueryResponseData,
    ReversalResponseData,
)
from .clients.real_http.mpesa import MpesaClient
from .clients.mocks.mpesa import MpesaMockClient
from src.utils.config_loader import Environment, MpesaConfig

__all__ = [
    # contracts
    "B2BArgs", "B2CArgs", "C2BArgs", "MpesaGateway",
    "OperationKind", "QueryArgs", "ReversalArgs",
    "MPESA_ERROR_MESSAGES", "SUCCESS_CODE", "describe_code",
    "format_amount", "validate_operation_args",
    # policy
    "MpesaError", "MpesaResponse",
    "B2BResponseData", "B2CResponseData", "C2BResponseData",
    "QueryResponseData", "ReversalResponseData",
    # clients
    "MpesaClient", "MpesaMockClient",
    # config
    "Environment", "MpesaConfig",
]
