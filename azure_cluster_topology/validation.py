"""Validation pass that rejects configuration errors before reconciliation.

The topology model accepts any shape so that observed state can always be
represented. Desired state has to pass these checks first: each
``collect_*`` function returns the problems it finds, and
:func:`validate_topology` / :func:`validate_vm` raise
:class:`TopologyValidationError` with all of them at once.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any

from .exceptions import TopologyValidationError
from .topology.cluster import ClusterTopology
from .topology.compute import VM, Image, OSDisk, UserAssignedIdentity
from .topology.enums import SecurityGroupProtocol, SubnetRole, VMIdentity
from .topology.network import IngressRule, SecurityGroup, Subnets, VnetSpec

logger = logging.getLogger(__name__)

DEFAULT_MAX_OS_DISK_SIZE_GB = 2048
MAX_PORT = 65535

_PORT = re.compile(r"[0-9]+", re.ASCII)
_PORT_RANGE = re.compile(r"([0-9]+)-([0-9]+)", re.ASCII)


@dataclass(frozen=True)
class FieldError:
    """A single configuration problem at a wire path."""

    path: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is None:
            return f"{self.path}: {self.message}"
        return f"{self.path}: {self.message} (got {self.value!r})"


def _raise_if_any(errors: list[FieldError], what: str) -> None:
    if errors:
        logger.warning(
            "%s failed validation with %d error(s)", what, len(errors),
            extra={"error_count": len(errors)},
        )
        raise TopologyValidationError(errors)


# ── Network ─────────────────────────────────────────────────────────


def _parse_cidr(cidr: str, path: str, errors: list[FieldError]):
    try:
        return ipaddress.ip_network(cidr, strict=False)
    except ValueError:
        errors.append(FieldError(path, "invalid CIDR block", cidr))
        return None


def collect_vnet(vnet: VnetSpec, path: str = "vnet") -> list[FieldError]:
    errors: list[FieldError] = []
    if not vnet.name:
        errors.append(FieldError(f"{path}.name", "vnet name is required"))
    if vnet.cidr_block:
        _parse_cidr(vnet.cidr_block, f"{path}.cidrBlock", errors)
    return errors


def is_valid_port_expression(expr: str) -> bool:
    """Accept ``*``, a single port, or an inclusive ``low-high`` range."""
    if expr == "*":
        return True
    if _PORT.fullmatch(expr):
        return 0 <= int(expr) <= MAX_PORT
    match = _PORT_RANGE.fullmatch(expr)
    if not match:
        return False
    low, high = int(match.group(1)), int(match.group(2))
    return 0 <= low <= high <= MAX_PORT


def collect_ingress_rule(rule: IngressRule, path: str = "ingressRule") -> list[FieldError]:
    errors: list[FieldError] = []
    if not rule.description:
        errors.append(FieldError(f"{path}.description", "description is required"))
    if not SecurityGroupProtocol(rule.protocol).is_known:
        errors.append(FieldError(f"{path}.protocol", "unsupported protocol", str(rule.protocol)))
    for wire, ports in (("sourcePorts", rule.source_ports), ("destinationPorts", rule.destination_ports)):
        if ports is not None and not is_valid_port_expression(ports):
            errors.append(FieldError(f"{path}.{wire}", "invalid port or port range", ports))
    return errors


def collect_security_group(group: SecurityGroup, path: str = "securityGroup") -> list[FieldError]:
    errors: list[FieldError] = []
    for i, rule in enumerate(group.ingress_rules):
        errors.extend(collect_ingress_rule(rule, f"{path}.ingressRule[{i}]"))
    return errors


def collect_subnets(
    subnets: Subnets,
    vnet_cidr: str = "",
    require_roles: bool = True,
    path: str = "subnets",
) -> list[FieldError]:
    """Check subnet names, roles, CIDRs and attached security groups.

    Two subnets claiming the same role is an error: nothing downstream can
    tell which one is meant.
    """
    errors: list[FieldError] = []
    vnet_net = ipaddress.ip_network(vnet_cidr, strict=False) if _is_cidr(vnet_cidr) else None

    names = Counter(s.name for s in subnets if s.name)
    for name, count in names.items():
        if count > 1:
            errors.append(FieldError(path, "duplicate subnet name", name))

    roles = Counter(s.role for s in subnets if s.role is not None)
    for role, count in roles.items():
        if count > 1:
            errors.append(FieldError(path, f"{count} subnets claim the same role", str(role)))

    for i, subnet in enumerate(subnets):
        sub_path = f"{path}[{i}]"
        if not subnet.name:
            errors.append(FieldError(f"{sub_path}.name", "subnet name is required"))
        if subnet.role is None:
            errors.append(FieldError(f"{sub_path}.role", "subnet role is required"))
        elif not SubnetRole(subnet.role).is_known:
            errors.append(FieldError(f"{sub_path}.role", "unknown subnet role", str(subnet.role)))

        subnet_net = None
        if subnet.cidr_block:
            subnet_net = _parse_cidr(subnet.cidr_block, f"{sub_path}.cidrBlock", errors)
        if subnet_net is not None and vnet_net is not None:
            if subnet_net.version != vnet_net.version or not subnet_net.subnet_of(vnet_net):
                errors.append(FieldError(
                    f"{sub_path}.cidrBlock", f"subnet is not within vnet CIDR {vnet_net}", subnet.cidr_block,
                ))

        if subnet.internal_lb_ip_address:
            errors.extend(_collect_internal_lb_ip(subnet.internal_lb_ip_address, subnet_net, sub_path))

        errors.extend(collect_security_group(subnet.security_group, f"{sub_path}.securityGroup"))

    if require_roles:
        for role in (SubnetRole.CONTROL_PLANE, SubnetRole.NODE):
            if role not in roles:
                errors.append(FieldError(path, "required subnet role is missing", role.value))
    return errors


def _is_cidr(cidr: str) -> bool:
    if not cidr:
        return False
    try:
        ipaddress.ip_network(cidr, strict=False)
    except ValueError:
        return False
    return True


def _collect_internal_lb_ip(address: str, subnet_net, path: str) -> list[FieldError]:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return [FieldError(f"{path}.internalLBIPAddress", "invalid IP address", address)]
    if subnet_net is not None and ip not in subnet_net:
        return [FieldError(f"{path}.internalLBIPAddress", f"address is not within subnet {subnet_net}", address)]
    return []


# ── Compute ─────────────────────────────────────────────────────────


def collect_image(image: Image, path: str = "image") -> list[FieldError]:
    """Exactly one image source must be set and its fields filled in."""
    selected = image.selected()
    if len(selected) != 1:
        return [FieldError(
            path,
            "exactly one of id, sharedGallery or marketplace must be set",
            selected or None,
        )]

    errors: list[FieldError] = []
    if image.id is not None and not image.id:
        errors.append(FieldError(f"{path}.id", "image ID must not be empty"))
    if image.marketplace is not None:
        m = image.marketplace
        for wire, value in (("publisher", m.publisher), ("offer", m.offer), ("sku", m.sku), ("version", m.version)):
            if not value:
                errors.append(FieldError(f"{path}.marketplace.{wire}", "field is required"))
    if image.shared_gallery is not None:
        g = image.shared_gallery
        for wire, value in (
            ("subscriptionID", g.subscription_id),
            ("resourceGroup", g.resource_group),
            ("gallery", g.gallery),
            ("name", g.name),
            ("version", g.version),
        ):
            if not value:
                errors.append(FieldError(f"{path}.sharedGallery.{wire}", "field is required"))
    return errors


def collect_os_disk(
    disk: OSDisk,
    max_size_gb: int = DEFAULT_MAX_OS_DISK_SIZE_GB,
    path: str = "osDisk",
) -> list[FieldError]:
    errors: list[FieldError] = []
    if not 0 < disk.disk_size_gb <= max_size_gb:
        errors.append(FieldError(
            f"{path}.diskSizeGB", f"disk size must be between 1 and {max_size_gb} GB", disk.disk_size_gb,
        ))
    if not disk.os_type:
        errors.append(FieldError(f"{path}.osType", "OS type is required"))
    if not disk.managed_disk.storage_account_type:
        errors.append(FieldError(f"{path}.managedDisk.storageAccountType", "storage account type is required"))
    return errors


def collect_vm_identity(
    identity: VMIdentity | None,
    user_assigned: list[UserAssignedIdentity],
    path: str = "identity",
) -> list[FieldError]:
    mode = VMIdentity(identity) if identity is not None else VMIdentity.NONE
    if not mode.is_known:
        return [FieldError(path, "unknown identity mode", str(mode))]
    if mode is VMIdentity.USER_ASSIGNED:
        if not user_assigned:
            return [FieldError("userAssignedIdentities", "at least one identity is required for UserAssigned")]
        return [
            FieldError(f"userAssignedIdentities[{i}].providerID", "provider ID is required")
            for i, ident in enumerate(user_assigned)
            if not ident.provider_id
        ]
    if user_assigned:
        return [FieldError("userAssignedIdentities", f"identities are only allowed with {VMIdentity.USER_ASSIGNED}")]
    return []


def collect_vm(
    vm: VM,
    user_assigned: list[UserAssignedIdentity] | None = None,
    max_os_disk_size_gb: int = DEFAULT_MAX_OS_DISK_SIZE_GB,
    path: str = "vm",
) -> list[FieldError]:
    errors: list[FieldError] = []
    errors.extend(collect_image(vm.image, f"{path}.image"))
    errors.extend(collect_os_disk(vm.os_disk, max_os_disk_size_gb, f"{path}.osDisk"))
    errors.extend(collect_vm_identity(vm.identity, user_assigned or [], f"{path}.identity"))
    return errors


# ── Entry points ────────────────────────────────────────────────────


def validate_image(image: Image) -> None:
    _raise_if_any(collect_image(image), "image")


def validate_subnets(subnets: Subnets, vnet_cidr: str = "", require_roles: bool = True) -> None:
    _raise_if_any(collect_subnets(subnets, vnet_cidr, require_roles), "subnets")


def validate_vm(
    vm: VM,
    user_assigned: list[UserAssignedIdentity] | None = None,
    max_os_disk_size_gb: int = DEFAULT_MAX_OS_DISK_SIZE_GB,
) -> None:
    _raise_if_any(collect_vm(vm, user_assigned, max_os_disk_size_gb), f"VM {vm.name or '<unnamed>'}")


def validate_topology(
    topology: ClusterTopology,
    require_role_subnets: bool = True,
    max_os_disk_size_gb: int = DEFAULT_MAX_OS_DISK_SIZE_GB,
) -> None:
    """Validate the desired state of a whole cluster."""
    errors: list[FieldError] = []
    if not topology.name:
        errors.append(FieldError("name", "cluster name is required"))

    spec = topology.network_spec
    errors.extend(collect_vnet(spec.vnet, "networkSpec.vnet"))
    errors.extend(collect_subnets(
        spec.subnets, spec.vnet.cidr_block, require_role_subnets, "networkSpec.subnets",
    ))
    for role, group in topology.network.security_groups.items():
        errors.extend(collect_security_group(group, f"network.securityGroups.{role}"))

    for i, vm in enumerate(topology.vms):
        if vm.state is not None:
            # Observed VMs are reported by Azure and are not desired state
            continue
        errors.extend(collect_vm(
            vm, topology.identities_for(vm.name), max_os_disk_size_gb, f"vms[{i}]",
        ))

    _raise_if_any(errors, f"cluster {topology.name or '<unnamed>'}")
    logger.debug("Cluster %s passed validation", topology.name)
