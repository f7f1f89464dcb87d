"""
target_gate.gate

Domain primitives of the target gate.

Responsibilities:
- Address/order-id encoding, rejection types, per-order locks and discovery metadata.
"""

# Package marker; import from submodules directly.
