"""
target_gate.services

Service-layer package.

Responsibilities:
- Own transaction boundaries and the gate's state transitions.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services take their session and lock table by handle so tests can drive them without HTTP.
