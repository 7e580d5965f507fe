"""
Contracts (data models).

This folder defines the request/response shapes for the M-Pesa gateway:
- operation arguments (C2B, B2C, B2B, query, reversal)
- gateway response codes and their user-facing descriptions
- validation and amount formatting rules

Both the mock and the real HTTP client use these contracts, so callers get
the same inputs rejected and the same shapes back in every environment.
"""
