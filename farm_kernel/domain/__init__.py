"""
Pure domain layer.

Value helpers shared by every engine. No I/O, no clock, no persistence.
"""

from farm_kernel.domain.values import ZERO, HUNDRED, quantize, to_decimal

__all__ = ["ZERO", "HUNDRED", "quantize", "to_decimal"]
