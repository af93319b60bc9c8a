"""Azure network and compute topology of a managed Kubernetes cluster."""

from .cluster import ClusterTopology
from .compute import (
    VM,
    AzureMarketplaceImage,
    AzureSharedGalleryImage,
    Image,
    ImageID,
    ImageSource,
    ManagedDisk,
    NodeAddress,
    OSDisk,
    UserAssignedIdentity,
)
from .enums import (
    CONTROL_PLANE,
    NODE,
    SKU,
    NodeAddressType,
    ResourceLifecycle,
    Role,
    SecurityGroupProtocol,
    SecurityGroupRole,
    SubnetRole,
    VMIdentity,
    VMState,
)
from .network import (
    BackendPool,
    FrontendIPConfig,
    IngressRule,
    LoadBalancer,
    Network,
    NetworkSpec,
    PublicIP,
    SecurityGroup,
    SubnetSpec,
    Subnets,
    VnetSpec,
)
from .tags import BuildParams, Tags, build_cluster_tags, cluster_tag_key, is_managed, parse_cluster_tag_key

__all__ = [
    "AzureMarketplaceImage",
    "AzureSharedGalleryImage",
    "BackendPool",
    "BuildParams",
    "CONTROL_PLANE",
    "ClusterTopology",
    "FrontendIPConfig",
    "Image",
    "ImageID",
    "ImageSource",
    "IngressRule",
    "LoadBalancer",
    "ManagedDisk",
    "NODE",
    "Network",
    "NetworkSpec",
    "NodeAddress",
    "NodeAddressType",
    "OSDisk",
    "PublicIP",
    "ResourceLifecycle",
    "Role",
    "SKU",
    "SecurityGroup",
    "SecurityGroupProtocol",
    "SecurityGroupRole",
    "SubnetRole",
    "SubnetSpec",
    "Subnets",
    "Tags",
    "UserAssignedIdentity",
    "VM",
    "VMIdentity",
    "VMState",
    "VnetSpec",
    "build_cluster_tags",
    "cluster_tag_key",
    "is_managed",
    "parse_cluster_tag_key",
]
