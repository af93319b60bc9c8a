"""Virtual machine, image, disk and identity models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..codec import wire_field
from ..exceptions import ImageSelectionError
from .enums import NodeAddressType, VMIdentity, VMState
from .tags import Tags


@dataclass(frozen=True)
class ImageID:
    """An image referenced by its full Azure resource ID."""

    id: str


@dataclass(frozen=True)
class AzureMarketplaceImage:
    """An image published in the Azure Marketplace.

    ``version`` is ``Major.Minor.Build`` or ``latest``; it is passed to Azure
    unchanged.
    """

    publisher: str = wire_field("publisher", default="")
    offer: str = wire_field("offer", default="")
    sku: str = wire_field("sku", default="")
    version: str = wire_field("version", default="")


@dataclass(frozen=True)
class AzureSharedGalleryImage:
    """An image version stored in an Azure Shared Image Gallery."""

    subscription_id: str = wire_field("subscriptionID", default="")
    resource_group: str = wire_field("resourceGroup", default="")
    gallery: str = wire_field("gallery", default="")
    name: str = wire_field("name", default="")
    version: str = wire_field("version", default="")


ImageSource = Union[ImageID, AzureSharedGalleryImage, AzureMarketplaceImage]


@dataclass(frozen=True)
class Image:
    """Image selection for a VM.

    Stored documents carry three optional fields and exactly one of them is
    expected to be set. Build images with :meth:`by_id`,
    :meth:`from_shared_gallery` or :meth:`from_marketplace`, and read them
    back with :meth:`resolve`.
    """

    id: str | None = wire_field("id", default=None)
    shared_gallery: AzureSharedGalleryImage | None = wire_field("sharedGallery", default=None)
    marketplace: AzureMarketplaceImage | None = wire_field("marketplace", default=None)

    @classmethod
    def by_id(cls, image_id: str) -> Image:
        return cls(id=image_id)

    @classmethod
    def from_shared_gallery(cls, image: AzureSharedGalleryImage) -> Image:
        return cls(shared_gallery=image)

    @classmethod
    def from_marketplace(cls, image: AzureMarketplaceImage) -> Image:
        return cls(marketplace=image)

    @classmethod
    def from_source(cls, source: ImageSource) -> Image:
        if isinstance(source, ImageID):
            return cls.by_id(source.id)
        if isinstance(source, AzureSharedGalleryImage):
            return cls.from_shared_gallery(source)
        if isinstance(source, AzureMarketplaceImage):
            return cls.from_marketplace(source)
        raise TypeError(f"not an image source: {source!r}")

    def selected(self) -> list[str]:
        """Wire names of the image fields that are set."""
        names = []
        if self.id is not None:
            names.append("id")
        if self.shared_gallery is not None:
            names.append("sharedGallery")
        if self.marketplace is not None:
            names.append("marketplace")
        return names

    def resolve(self) -> ImageSource:
        """Return the single selected image source.

        Raises ImageSelectionError when zero or several sources are set.
        """
        selected = self.selected()
        if len(selected) != 1:
            raise ImageSelectionError(
                f"exactly one of id, sharedGallery or marketplace must be set, got {len(selected)}",
                selected=selected,
            )
        if self.id is not None:
            return ImageID(self.id)
        if self.shared_gallery is not None:
            return self.shared_gallery
        return self.marketplace  # type: ignore[return-value]


@dataclass
class ManagedDisk:
    storage_account_type: str = wire_field("storageAccountType", default="")


@dataclass
class OSDisk:
    """Operating system disk of a VM."""

    os_type: str = wire_field("osType", default="")
    disk_size_gb: int = wire_field("diskSizeGB", default=0)
    managed_disk: ManagedDisk = wire_field("managedDisk", default_factory=ManagedDisk)


@dataclass(frozen=True)
class UserAssignedIdentity:
    """A user-assigned managed identity.

    ``provider_id`` looks like ``azure:///subscriptions/{sub}/resourceGroups/{rg}/
    providers/Microsoft.ManagedIdentity/userAssignedIdentities/{name}``.
    """

    provider_id: str = wire_field("providerID", default="")


@dataclass(frozen=True)
class NodeAddress:
    type: NodeAddressType = wire_field("type", default=NodeAddressType.INTERNAL_IP)
    address: str = wire_field("address", default="")


@dataclass
class VM:
    """An Azure virtual machine.

    ``state`` is the only field that changes after creation; it holds the
    provisioning state exactly as Azure last reported it.
    """

    id: str = wire_field("id", omitempty=True, default="")
    name: str = wire_field("name", omitempty=True, default="")
    availability_zone: str = wire_field("availabilityZone", omitempty=True, default="")
    vm_size: str = wire_field("vmSize", omitempty=True, default="")
    image: Image = wire_field("image", default_factory=Image)
    os_disk: OSDisk = wire_field("osDisk", default_factory=OSDisk)
    startup_script: str = wire_field("startupScript", omitempty=True, default="")
    state: VMState | None = wire_field("vmState", default=None)
    identity: VMIdentity | None = wire_field("identity", default=None)
    tags: Tags = wire_field("tags", omitempty=True, default_factory=Tags)
    addresses: list[NodeAddress] = wire_field("addresses", omitempty=True, default_factory=list)

    def addresses_of_type(self, address_type: NodeAddressType | str) -> list[str]:
        address_type = NodeAddressType(address_type)
        return [a.address for a in self.addresses if a.type == address_type]
