"""
Farm Kernel - shared foundation for the planning engines

Provides:
- Structured JSON logging with engine-scoped context
- Typed exception hierarchy with machine-readable codes
- Decimal coercion for quantities and amounts read from source records
"""

__version__ = "0.1.0"
