"""
target_gate.clients

Client package for callers of the gate's HTTP façade.
"""

# Package marker.
