"""Per-cluster aggregate of the desired and observed topology."""

from __future__ import annotations

from dataclasses import dataclass

from ..codec import wire_field
from .compute import VM, UserAssignedIdentity
from .enums import SecurityGroupRole, SubnetRole
from .network import Network, NetworkSpec, SecurityGroup, SubnetSpec


@dataclass
class ClusterTopology:
    """All Azure network and compute resources backing one cluster.

    Every cluster gets its own instance; nothing is shared between them.
    """

    name: str = wire_field("name", default="")
    resource_group: str = wire_field("resourceGroup", omitempty=True, default="")
    location: str = wire_field("location", omitempty=True, default="")
    network_spec: NetworkSpec = wire_field("networkSpec", default_factory=NetworkSpec)
    network: Network = wire_field("network", default_factory=Network)
    vms: list[VM] = wire_field("vms", omitempty=True, default_factory=list)
    # Keyed by VM name; only meaningful for VMs using UserAssigned identity
    user_assigned_identities: dict[str, list[UserAssignedIdentity]] = wire_field(
        "userAssignedIdentities", omitempty=True, default_factory=dict,
    )

    def is_vnet_managed(self) -> bool:
        return self.network_spec.vnet.is_managed(self.name)

    def subnets_for(self, role: SubnetRole | str) -> list[SubnetSpec]:
        return self.network_spec.subnets.with_role(role)

    def security_group_for(self, role: SecurityGroupRole | str) -> SecurityGroup | None:
        return self.network.security_group_for(role)

    def identities_for(self, vm_name: str) -> list[UserAssignedIdentity]:
        return self.user_assigned_identities.get(vm_name, [])

    def vm_named(self, name: str) -> VM | None:
        for vm in self.vms:
            if vm.name == name:
                return vm
        return None
