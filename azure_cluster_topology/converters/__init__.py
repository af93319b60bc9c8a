"""Translation between Azure SDK models and the topology model.

Functions named ``sdk_to_*`` read observed state from azure-mgmt model
objects; ``*_to_sdk`` build the SDK parameters for desired state. Nothing
here creates an SDK client or talks to Azure.
"""

from .compute import (
    image_to_sdk,
    os_disk_to_sdk,
    sdk_to_image,
    sdk_to_os_disk,
    sdk_to_vm,
    sdk_to_vm_identity,
    vm_identity_to_sdk,
)
from .network import (
    ingress_rule_to_sdk,
    ingress_rules_to_sdk,
    sdk_to_ingress_rule,
    sdk_to_load_balancer,
    sdk_to_public_ip,
    sdk_to_security_group,
    sdk_to_subnet,
    sdk_to_vnet,
)
from .resource_id import name_from_id, resource_group_from_id

__all__ = [
    "image_to_sdk",
    "ingress_rule_to_sdk",
    "ingress_rules_to_sdk",
    "name_from_id",
    "os_disk_to_sdk",
    "resource_group_from_id",
    "sdk_to_image",
    "sdk_to_ingress_rule",
    "sdk_to_load_balancer",
    "sdk_to_os_disk",
    "sdk_to_public_ip",
    "sdk_to_security_group",
    "sdk_to_subnet",
    "sdk_to_vm",
    "sdk_to_vm_identity",
    "sdk_to_vnet",
    "vm_identity_to_sdk",
]
