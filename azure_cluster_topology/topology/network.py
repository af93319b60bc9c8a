"""Virtual network, subnet, security group and load balancer models."""

from __future__ import annotations

from dataclasses import dataclass

from ..codec import wire_field
from .enums import SKU, SecurityGroupProtocol, SecurityGroupRole, SubnetRole
from .tags import Tags, is_managed


@dataclass
class VnetSpec:
    """An Azure virtual network.

    ``id`` is empty until Azure allocates the network. A vnet with an ``id``
    but without this cluster's ownership tag was brought by the user and is
    never modified or deleted.
    """

    name: str = wire_field("name", default="")
    resource_group: str = wire_field("resourceGroup", omitempty=True, default="")
    id: str = wire_field("id", omitempty=True, default="")
    cidr_block: str = wire_field("cidrBlock", omitempty=True, default="")
    tags: Tags = wire_field("tags", omitempty=True, default_factory=Tags)

    def is_managed(self, cluster_name: str) -> bool:
        return is_managed(self.id, self.tags, cluster_name)


@dataclass
class IngressRule:
    """An inbound security rule.

    Port and address expressions use Azure syntax (``*``, ``22``,
    ``30000-32767``, CIDRs or service tags) and are passed through verbatim.
    ``None`` means the field was not given at all.
    """

    description: str = wire_field("description", default="")
    protocol: SecurityGroupProtocol = wire_field("protocol", default=SecurityGroupProtocol.ALL)
    source_ports: str | None = wire_field("sourcePorts", default=None)
    destination_ports: str | None = wire_field("destinationPorts", default=None)
    source: str | None = wire_field("source", default=None)
    destination: str | None = wire_field("destination", default=None)


@dataclass
class SecurityGroup:
    """An Azure network security group. Rule order is evaluation order."""

    id: str = wire_field("id", omitempty=True, default="")
    name: str = wire_field("name", omitempty=True, default="")
    ingress_rules: list[IngressRule] = wire_field("ingressRule", omitempty=True, default_factory=list)
    tags: Tags = wire_field("tags", omitempty=True, default_factory=Tags)

    def is_managed(self, cluster_name: str) -> bool:
        return is_managed(self.id, self.tags, cluster_name)


@dataclass
class SubnetSpec:
    """An Azure subnet and the security group attached to it."""

    name: str = wire_field("name", default="")
    role: SubnetRole | None = wire_field("role", default=None)
    id: str = wire_field("id", omitempty=True, default="")
    cidr_block: str = wire_field("cidrBlock", omitempty=True, default="")
    # Control plane subnet only
    internal_lb_ip_address: str = wire_field("internalLBIPAddress", omitempty=True, default="")
    security_group: SecurityGroup = wire_field("securityGroup", default_factory=SecurityGroup)


class Subnets(list[SubnetSpec]):
    """Ordered subnets of a vnet.

    More than one subnet may claim the same role; nothing here picks a
    winner. Duplicates are reported by :func:`validation.validate_subnets`.
    """

    def with_role(self, role: SubnetRole | str) -> list[SubnetSpec]:
        role = SubnetRole(role)
        return [s for s in self if s.role == role]

    def roles(self) -> list[SubnetRole | None]:
        return [s.role for s in self]


@dataclass
class PublicIP:
    """An Azure public IP address."""

    id: str = wire_field("id", omitempty=True, default="")
    name: str = wire_field("name", omitempty=True, default="")
    ip_address: str = wire_field("ipAddress", omitempty=True, default="")
    dns_name: str = wire_field("dnsName", omitempty=True, default="")


@dataclass
class BackendPool:
    name: str = wire_field("name", omitempty=True, default="")
    id: str = wire_field("id", omitempty=True, default="")


@dataclass
class FrontendIPConfig:
    """Deprecated and always empty; kept so stored documents still decode."""


@dataclass
class LoadBalancer:
    """An API server facing or internal Azure load balancer."""

    id: str = wire_field("id", omitempty=True, default="")
    name: str = wire_field("name", omitempty=True, default="")
    sku: SKU | None = wire_field("sku", default=None)
    frontend_ip_config: FrontendIPConfig = wire_field("frontendIpConfig", default_factory=FrontendIPConfig)
    backend_pool: BackendPool = wire_field("backendPool", default_factory=BackendPool)
    tags: Tags = wire_field("tags", omitempty=True, default_factory=Tags)

    def is_managed(self, cluster_name: str) -> bool:
        return is_managed(self.id, self.tags, cluster_name)


@dataclass
class NetworkSpec:
    """Desired networking: the vnet and its subnets."""

    vnet: VnetSpec = wire_field("vnet", default_factory=VnetSpec)
    subnets: Subnets = wire_field("subnets", omitempty=True, default_factory=Subnets)


@dataclass
class Network:
    """Observed networking state of a cluster."""

    security_groups: dict[SecurityGroupRole, SecurityGroup] = wire_field(
        "securityGroups", omitempty=True, default_factory=dict,
    )
    api_server_lb: LoadBalancer = wire_field("apiServerLb", default_factory=LoadBalancer)
    api_server_ip: PublicIP = wire_field("apiServerIp", default_factory=PublicIP)

    def security_group_for(self, role: SecurityGroupRole | str) -> SecurityGroup | None:
        return self.security_groups.get(SecurityGroupRole(role))
