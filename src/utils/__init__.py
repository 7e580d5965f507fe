"""
Utility modules for the M-Pesa client
"""
from .auth_token import TokenGenerationError, format_public_key, generate_bearer_token
from .config_loader import Environment, MpesaConfig, load_mpesa_config
from .references import generate_unique_reference

__all__ = [
    'TokenGenerationError',
    'format_public_key',
    'generate_bearer_token',
    'Environment',
    'MpesaConfig',
    'load_mpesa_config',
    'generate_unique_reference',
]
