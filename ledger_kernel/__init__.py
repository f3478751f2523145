"""
Ledger Kernel

Read-side building blocks for the supply ledger:
- Canonical transaction value types and sign convention
- NaN-free numeric coercion and output rounding
- Explicit join resolution (Found / Missing)
- Read-only source readers over the backing store
- Structured logging and typed errors
"""

__version__ = "0.1.0"
