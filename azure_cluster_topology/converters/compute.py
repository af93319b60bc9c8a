"""Virtual machine, image, disk and identity conversion."""

from __future__ import annotations

import logging
import re
from typing import Any

from azure.mgmt.compute.models import (
    DiskCreateOptionTypes,
    ImageReference,
    ManagedDiskParameters,
    OSDisk as SDKOSDisk,
    ResourceIdentityType,
    UserAssignedIdentitiesValue,
    VirtualMachineIdentity,
)

from ..exceptions import TopologyValidationError
from ..topology.compute import (
    VM,
    AzureMarketplaceImage,
    AzureSharedGalleryImage,
    Image,
    ImageID,
    ManagedDisk,
    NodeAddress,
    OSDisk,
    UserAssignedIdentity,
)
from ..topology.enums import VMIdentity, VMState
from ..topology.tags import Tags
from ..validation import FieldError
from .resource_id import enum_value

logger = logging.getLogger(__name__)

PROVIDER_ID_PREFIX = "azure://"

_GALLERY_IMAGE_ID = re.compile(
    r"^/subscriptions/(?P<subscription>[^/]+)"
    r"/resourceGroups/(?P<resource_group>[^/]+)"
    r"/providers/Microsoft\.Compute/galleries/(?P<gallery>[^/]+)"
    r"/images/(?P<name>[^/]+)"
    r"/versions/(?P<version>[^/]+)$",
    re.IGNORECASE,
)


def shared_gallery_image_id(image: AzureSharedGalleryImage) -> str:
    return (
        f"/subscriptions/{image.subscription_id}/resourceGroups/{image.resource_group}"
        f"/providers/Microsoft.Compute/galleries/{image.gallery}"
        f"/images/{image.name}/versions/{image.version}"
    )


# ── Observed state ───────────────────────────────────────────────────


def sdk_to_image(ref: Any) -> Image:
    """Convert an ImageReference into an image selection.

    Gallery image version IDs become shared gallery images; any other ID is
    kept as a plain image ID.
    """
    if ref is None:
        return Image()
    if ref.id:
        match = _GALLERY_IMAGE_ID.match(ref.id)
        if match:
            return Image.from_shared_gallery(AzureSharedGalleryImage(
                subscription_id=match.group("subscription"),
                resource_group=match.group("resource_group"),
                gallery=match.group("gallery"),
                name=match.group("name"),
                version=match.group("version"),
            ))
        return Image.by_id(ref.id)
    if ref.publisher:
        return Image.from_marketplace(AzureMarketplaceImage(
            publisher=ref.publisher,
            offer=ref.offer or "",
            sku=ref.sku or "",
            version=ref.version or "",
        ))
    return Image()


def sdk_to_os_disk(disk: Any) -> OSDisk:
    if disk is None:
        return OSDisk()
    storage_account_type = ""
    if disk.managed_disk is not None:
        storage_account_type = enum_value(disk.managed_disk.storage_account_type) or ""
    return OSDisk(
        os_type=enum_value(disk.os_type) or "",
        disk_size_gb=disk.disk_size_gb or 0,
        managed_disk=ManagedDisk(storage_account_type=storage_account_type),
    )


def sdk_to_vm_identity(identity: Any) -> VMIdentity:
    """Identity mode of a VM; combined or new Azure modes are preserved as-is."""
    if identity is None or identity.type is None:
        return VMIdentity.NONE
    return VMIdentity(enum_value(identity.type))


def sdk_to_vm(vm: Any, addresses: list[NodeAddress] | None = None) -> VM:
    """Convert an Azure VirtualMachine into observed VM state.

    Addresses live on the VM's network interfaces, so the caller resolves and
    passes them in.
    """
    state = None
    if vm.provisioning_state:
        state = VMState(vm.provisioning_state)
        if not state.is_known:
            logger.info("VM %s reports unrecognised provisioning state %s", vm.name, vm.provisioning_state)

    vm_size = ""
    if vm.hardware_profile is not None:
        vm_size = enum_value(vm.hardware_profile.vm_size) or ""

    image = Image()
    os_disk = OSDisk()
    if vm.storage_profile is not None:
        image = sdk_to_image(vm.storage_profile.image_reference)
        os_disk = sdk_to_os_disk(vm.storage_profile.os_disk)

    return VM(
        id=vm.id or "",
        name=vm.name or "",
        availability_zone=vm.zones[0] if vm.zones else "",
        vm_size=vm_size,
        image=image,
        os_disk=os_disk,
        state=state,
        identity=sdk_to_vm_identity(vm.identity),
        tags=Tags(vm.tags or {}),
        addresses=list(addresses or []),
    )


# ── Desired state ────────────────────────────────────────────────────


def image_to_sdk(image: Image) -> ImageReference:
    """Build the ImageReference for a VM.

    Raises ImageSelectionError unless exactly one image source is set.
    """
    source = image.resolve()
    if isinstance(source, ImageID):
        return ImageReference(id=source.id)
    if isinstance(source, AzureSharedGalleryImage):
        return ImageReference(id=shared_gallery_image_id(source))
    return ImageReference(
        publisher=source.publisher,
        offer=source.offer,
        sku=source.sku,
        version=source.version,
    )


def os_disk_to_sdk(disk: OSDisk, name: str | None = None) -> SDKOSDisk:
    return SDKOSDisk(
        name=name,
        os_type=disk.os_type,
        create_option=DiskCreateOptionTypes.FROM_IMAGE,
        disk_size_gb=disk.disk_size_gb,
        managed_disk=ManagedDiskParameters(storage_account_type=disk.managed_disk.storage_account_type),
    )


def vm_identity_to_sdk(
    identity: VMIdentity | None,
    user_assigned: list[UserAssignedIdentity] | None = None,
) -> VirtualMachineIdentity | None:
    """Build the VirtualMachineIdentity parameter, or None for no identity."""
    mode = VMIdentity(identity) if identity is not None else VMIdentity.NONE
    if mode is VMIdentity.NONE:
        return None
    if mode is VMIdentity.SYSTEM_ASSIGNED:
        return VirtualMachineIdentity(type=ResourceIdentityType.SYSTEM_ASSIGNED)
    if mode is VMIdentity.USER_ASSIGNED:
        if not user_assigned:
            raise TopologyValidationError([
                FieldError("userAssignedIdentities", "at least one identity is required for UserAssigned"),
            ])
        identities = {
            ident.provider_id.removeprefix(PROVIDER_ID_PREFIX): UserAssignedIdentitiesValue()
            for ident in user_assigned
        }
        return VirtualMachineIdentity(
            type=ResourceIdentityType.USER_ASSIGNED,
            user_assigned_identities=identities,
        )
    raise TopologyValidationError([FieldError("identity", "unknown identity mode", str(mode))])
