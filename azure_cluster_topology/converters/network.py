"""Network security group, vnet, subnet, public IP and load balancer conversion."""

from __future__ import annotations

import logging
import re
from typing import Any

from azure.mgmt.network.models import SecurityRule, SecurityRuleAccess, SecurityRuleDirection

from ..topology.enums import SKU, SecurityGroupProtocol, SubnetRole
from ..topology.network import (
    BackendPool,
    IngressRule,
    LoadBalancer,
    PublicIP,
    SecurityGroup,
    SubnetSpec,
    VnetSpec,
)
from ..topology.tags import Tags
from .resource_id import enum_value, name_from_id, resource_group_from_id

logger = logging.getLogger(__name__)

DEFAULT_BASE_PRIORITY = 100
DEFAULT_PRIORITY_STEP = 10
MAX_PRIORITY = 4096

_NON_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


# ── Observed state ───────────────────────────────────────────────────


def sdk_to_ingress_rule(rule: Any) -> IngressRule:
    protocol = enum_value(rule.protocol) or SecurityGroupProtocol.ALL.value
    return IngressRule(
        description=rule.description or rule.name or "",
        protocol=SecurityGroupProtocol(protocol),
        source_ports=rule.source_port_range,
        destination_ports=rule.destination_port_range,
        source=rule.source_address_prefix,
        destination=rule.destination_address_prefix,
    )


def sdk_to_security_group(nsg: Any) -> SecurityGroup:
    """Convert a NetworkSecurityGroup, keeping inbound rules in priority order."""
    inbound = [
        r for r in (nsg.security_rules or [])
        if enum_value(r.direction) in (None, SecurityRuleDirection.INBOUND.value)
    ]
    inbound.sort(key=lambda r: r.priority if r.priority is not None else MAX_PRIORITY + 1)
    return SecurityGroup(
        id=nsg.id or "",
        name=nsg.name or "",
        ingress_rules=[sdk_to_ingress_rule(r) for r in inbound],
        tags=Tags(nsg.tags or {}),
    )


def sdk_to_vnet(vnet: Any) -> VnetSpec:
    prefixes = []
    if vnet.address_space is not None:
        prefixes = vnet.address_space.address_prefixes or []
    if len(prefixes) > 1:
        logger.debug("Vnet %s has %d address prefixes, using the first", vnet.name, len(prefixes))
    return VnetSpec(
        id=vnet.id or "",
        name=vnet.name or "",
        resource_group=resource_group_from_id(vnet.id),
        cidr_block=prefixes[0] if prefixes else "",
        tags=Tags(vnet.tags or {}),
    )


def sdk_to_subnet(subnet: Any, role: SubnetRole | str | None = None) -> SubnetSpec:
    """Convert a Subnet. Azure does not know roles, so the caller supplies it."""
    cidr = subnet.address_prefix or ""
    if not cidr and subnet.address_prefixes:
        cidr = subnet.address_prefixes[0]
    security_group = SecurityGroup()
    if subnet.network_security_group is not None and subnet.network_security_group.id:
        nsg_id = subnet.network_security_group.id
        security_group = SecurityGroup(id=nsg_id, name=name_from_id(nsg_id))
    return SubnetSpec(
        id=subnet.id or "",
        name=subnet.name or "",
        role=SubnetRole(role) if role is not None else None,
        cidr_block=cidr,
        security_group=security_group,
    )


def sdk_to_public_ip(pip: Any) -> PublicIP:
    dns_name = ""
    if pip.dns_settings is not None:
        dns_name = pip.dns_settings.fqdn or ""
    return PublicIP(
        id=pip.id or "",
        name=pip.name or "",
        ip_address=pip.ip_address or "",
        dns_name=dns_name,
    )


def sdk_to_load_balancer(lb: Any) -> LoadBalancer:
    sku = None
    if lb.sku is not None and lb.sku.name is not None:
        sku = SKU(enum_value(lb.sku.name))
    pools = lb.backend_address_pools or []
    if len(pools) > 1:
        logger.debug("Load balancer %s has %d backend pools, using the first", lb.name, len(pools))
    backend_pool = BackendPool(name=pools[0].name or "", id=pools[0].id or "") if pools else BackendPool()
    return LoadBalancer(
        id=lb.id or "",
        name=lb.name or "",
        sku=sku,
        backend_pool=backend_pool,
        tags=Tags(lb.tags or {}),
    )


# ── Desired state ────────────────────────────────────────────────────


def _rule_name(rule: IngressRule, priority: int) -> str:
    name = _NON_NAME_CHARS.sub("_", rule.description).strip("_")
    return name or f"rule_{priority}"


def ingress_rule_to_sdk(rule: IngressRule, priority: int, name: str | None = None) -> SecurityRule:
    """Build an inbound allow SecurityRule from an ingress rule."""
    return SecurityRule(
        name=name or _rule_name(rule, priority),
        description=rule.description,
        protocol=SecurityGroupProtocol(rule.protocol).value,
        source_port_range=rule.source_ports,
        destination_port_range=rule.destination_ports,
        source_address_prefix=rule.source,
        destination_address_prefix=rule.destination,
        access=SecurityRuleAccess.ALLOW,
        direction=SecurityRuleDirection.INBOUND,
        priority=priority,
    )


def ingress_rules_to_sdk(
    rules: list[IngressRule],
    base_priority: int = DEFAULT_BASE_PRIORITY,
    step: int = DEFAULT_PRIORITY_STEP,
) -> list[SecurityRule]:
    """Convert rules in order, giving earlier rules lower (stronger) priorities."""
    last = base_priority + step * (len(rules) - 1)
    if rules and last > MAX_PRIORITY:
        raise ValueError(f"{len(rules)} rules do not fit below priority {MAX_PRIORITY}")
    return [
        ingress_rule_to_sdk(rule, base_priority + step * i)
        for i, rule in enumerate(rules)
    ]
