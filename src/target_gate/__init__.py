"""
target_gate

Top-level package for the Target Gate service: a single-use authorization gate that
lets exactly one pre-designated counterparty complete an order.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects across the codebase.
