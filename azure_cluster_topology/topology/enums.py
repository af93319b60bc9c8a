"""String enumerations shared by the network and compute models.

Every enumeration here is *open*: a value the cloud provider reports that is
not in the known set is kept as an opaque pseudo-member instead of being
rejected, so observed state is never lost on decode.

VM provisioning state transitions:
    Creating  -> Succeeded | Failed
    Succeeded -> Updating | Migrating | Deleting
    Updating  -> Succeeded | Failed
    Migrating -> Succeeded | Failed
    Failed    -> Creating (retry) | Deleting (teardown)
    Deleting  -> terminal
"""

from __future__ import annotations

from enum import Enum

# Machine role labels
CONTROL_PLANE = "control-plane"
NODE = "node"


class OpenStrEnum(str, Enum):
    """A ``str`` enumeration that preserves unrecognised values."""

    @classmethod
    def _missing_(cls, value: object) -> OpenStrEnum | None:
        if not isinstance(value, str):
            return None
        member = str.__new__(cls, value)
        member._name_ = "UNKNOWN"
        member._value_ = value
        return member

    @property
    def is_known(self) -> bool:
        return self._value_ in type(self)._value2member_map_

    def __str__(self) -> str:
        return self._value_

    def __repr__(self) -> str:
        return f"<{type(self).__name__}.{self._name_}: {self._value_!r}>"


# =============================================================================
# Roles
# =============================================================================


class Role(OpenStrEnum):
    """Logical partition a network resource is routed to."""

    CONTROL_PLANE = CONTROL_PLANE
    NODE = NODE


class SubnetRole(OpenStrEnum):
    """Role of a subnet (control-plane or worker node subnet)."""

    CONTROL_PLANE = CONTROL_PLANE
    NODE = NODE


class SecurityGroupRole(OpenStrEnum):
    """Role of a network security group."""

    CONTROL_PLANE = CONTROL_PLANE
    NODE = NODE


# =============================================================================
# Network
# =============================================================================


class SecurityGroupProtocol(OpenStrEnum):
    """IP protocol matched by an ingress rule."""

    ALL = "*"
    TCP = "Tcp"
    UDP = "Udp"


class SKU(OpenStrEnum):
    """Azure load balancer SKU."""

    BASIC = "Basic"
    STANDARD = "Standard"


class NodeAddressType(OpenStrEnum):
    """Kind of address reported for a VM."""

    HOSTNAME = "Hostname"
    EXTERNAL_IP = "ExternalIP"
    INTERNAL_IP = "InternalIP"
    EXTERNAL_DNS = "ExternalDNS"
    INTERNAL_DNS = "InternalDNS"


# =============================================================================
# Compute
# =============================================================================


class VMState(OpenStrEnum):
    """Provisioning state of an Azure virtual machine, as reported by Azure."""

    CREATING = "Creating"
    DELETING = "Deleting"
    FAILED = "Failed"
    MIGRATING = "Migrating"
    SUCCEEDED = "Succeeded"
    UPDATING = "Updating"

    @property
    def is_terminal(self) -> bool:
        return self is VMState.DELETING

    def can_transition_to(self, other: VMState | str) -> bool:
        """Whether Azure may move a VM from this state to ``other``.

        Unknown states on either side never allow a transition.
        """
        other = VMState(other)
        if not (self.is_known and other.is_known):
            return False
        return other in _VM_STATE_TRANSITIONS[self]


_VM_STATE_TRANSITIONS: dict[VMState, frozenset[VMState]] = {
    VMState.CREATING: frozenset({VMState.SUCCEEDED, VMState.FAILED}),
    VMState.SUCCEEDED: frozenset({VMState.UPDATING, VMState.MIGRATING, VMState.DELETING}),
    VMState.UPDATING: frozenset({VMState.SUCCEEDED, VMState.FAILED}),
    VMState.MIGRATING: frozenset({VMState.SUCCEEDED, VMState.FAILED}),
    VMState.FAILED: frozenset({VMState.CREATING, VMState.DELETING}),
    VMState.DELETING: frozenset(),
}


class VMIdentity(OpenStrEnum):
    """Managed identity mode of a virtual machine."""

    NONE = "None"
    SYSTEM_ASSIGNED = "SystemAssigned"
    USER_ASSIGNED = "UserAssigned"


class ResourceLifecycle(OpenStrEnum):
    """Value of a cluster ownership tag."""

    OWNED = "owned"
    SHARED = "shared"
