"""
Transaction reference helpers
"""
import random
import time


def generate_unique_reference(prefix: str = "REF") -> str:
    """
    Build a reference as prefix + epoch milliseconds + random 0-999.

    Good enough for correlation; the gateway deduplicates on its side, so this
    is not guaranteed unique under heavy load within one millisecond.
    """
    millis = time.time_ns() // 1_000_000
    return f"{prefix}{millis}{random.randint(0, 999)}"
