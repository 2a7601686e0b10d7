"""
Root Registry and Rotation

The committed-root state of a batch grant and the protocol for amending it.
"""
from .root_escrow import (
    EscrowCreated,
    RootEscrow,
    RootFunded,
    RootUpdated,
    is_noop_rotation,
)
from .rotation import (
    RotationPlan,
    add_recipients,
    plan_rotation,
    plan_rotation_from_records,
    remove_recipients,
)

__all__ = [
    "RootEscrow",
    "RootUpdated",
    "RootFunded",
    "EscrowCreated",
    "is_noop_rotation",
    "RotationPlan",
    "plan_rotation",
    "plan_rotation_from_records",
    "add_recipients",
    "remove_recipients",
]
