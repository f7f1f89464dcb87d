"""
target_gate.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- FastAPI auth dependencies (Principal, caller address, RBAC).
"""

# Package marker.
