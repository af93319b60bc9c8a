"""Tests for wire encoding and decoding."""

import json

import pytest
import yaml

from azure_cluster_topology.codec import from_dict, from_json, from_yaml, to_dict, to_json, to_yaml
from azure_cluster_topology.exceptions import DecodeError
from azure_cluster_topology.topology.cluster import ClusterTopology
from azure_cluster_topology.topology.compute import (
    VM,
    AzureMarketplaceImage,
    AzureSharedGalleryImage,
    Image,
    ManagedDisk,
    NodeAddress,
    OSDisk,
    UserAssignedIdentity,
)
from azure_cluster_topology.topology.enums import (
    SKU,
    NodeAddressType,
    SecurityGroupProtocol,
    SecurityGroupRole,
    SubnetRole,
    VMIdentity,
    VMState,
)
from azure_cluster_topology.topology.network import (
    BackendPool,
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
from azure_cluster_topology.topology.tags import Tags


def _make_vm(**kwargs):
    defaults = dict(
        id="/subscriptions/s/resourceGroups/rg/providers/Microsoft.Compute/virtualMachines/demo-cp-0",
        name="demo-cp-0",
        availability_zone="2",
        vm_size="Standard_D2s_v3",
        image=Image.from_marketplace(
            AzureMarketplaceImage(publisher="cncf-upstream", offer="capi", sku="k8s-1dot18", version="latest"),
        ),
        os_disk=OSDisk(os_type="Linux", disk_size_gb=128, managed_disk=ManagedDisk("Premium_LRS")),
        startup_script="#!/bin/sh\necho hi\n",
        state=VMState.SUCCEEDED,
        identity=VMIdentity.SYSTEM_ASSIGNED,
        tags=Tags({"sigs.k8s.io_cluster-api-provider-azure_cluster_demo": "owned"}),
        addresses=[
            NodeAddress(type=NodeAddressType.INTERNAL_IP, address="10.0.0.4"),
            NodeAddress(type=NodeAddressType.HOSTNAME, address="demo-cp-0"),
        ],
    )
    defaults.update(kwargs)
    return VM(**defaults)


def _make_security_group():
    return SecurityGroup(
        id="/nsg/cp",
        name="demo-cp-nsg",
        ingress_rules=[
            IngressRule(
                description="Allow K8s API Server",
                protocol=SecurityGroupProtocol.TCP,
                source_ports="*",
                destination_ports="6443",
                source="*",
                destination="*",
            ),
            IngressRule(description="Allow SSH", protocol=SecurityGroupProtocol.TCP, destination_ports="22"),
            IngressRule(description="Allow UDP", protocol=SecurityGroupProtocol.UDP, source=""),
        ],
        tags=Tags({"env": "prod"}),
    )


def _make_subnets():
    return Subnets([
        SubnetSpec(
            name="demo-cp-subnet",
            role=SubnetRole.CONTROL_PLANE,
            cidr_block="10.0.0.0/16",
            internal_lb_ip_address="10.0.0.100",
            security_group=_make_security_group(),
        ),
        SubnetSpec(name="demo-node-subnet", role=SubnetRole.NODE, cidr_block="10.1.0.0/16"),
    ])


class TestEncode:
    def test_wire_names(self):
        data = to_dict(_make_vm())
        assert data["vmSize"] == "Standard_D2s_v3"
        assert data["availabilityZone"] == "2"
        assert data["vmState"] == "Succeeded"
        assert data["identity"] == "SystemAssigned"
        assert data["osDisk"] == {
            "osType": "Linux",
            "diskSizeGB": 128,
            "managedDisk": {"storageAccountType": "Premium_LRS"},
        }
        assert data["image"] == {
            "marketplace": {"publisher": "cncf-upstream", "offer": "capi", "sku": "k8s-1dot18", "version": "latest"},
        }
        assert data["addresses"][0] == {"type": "InternalIP", "address": "10.0.0.4"}

    def test_empty_vm_omits_empty_fields(self):
        assert to_dict(VM()) == {
            "image": {},
            "osDisk": {"osType": "", "diskSizeGB": 0, "managedDisk": {"storageAccountType": ""}},
        }

    def test_required_fields_always_emitted(self):
        assert to_dict(VnetSpec()) == {"name": ""}
        assert to_dict(IngressRule()) == {"description": "", "protocol": "*"}

    def test_optional_empty_string_is_emitted(self):
        data = to_dict(IngressRule(description="x", source=""))
        assert data["source"] == ""
        assert "destination" not in data

    def test_deprecated_frontend_config_is_empty_object(self):
        data = to_dict(LoadBalancer(name="lb", sku=SKU.STANDARD))
        assert data == {"name": "lb", "sku": "Standard", "frontendIpConfig": {}, "backendPool": {}}

    def test_security_group_rule_key(self):
        data = to_dict(_make_security_group())
        assert [r["description"] for r in data["ingressRule"]] == [
            "Allow K8s API Server", "Allow SSH", "Allow UDP",
        ]

    def test_rejects_scalars(self):
        with pytest.raises(TypeError):
            to_dict("subnet")
        with pytest.raises(TypeError):
            to_dict(SubnetSpec)

    def test_plain_types_for_yaml(self):
        network = Network(security_groups={SecurityGroupRole.NODE: SecurityGroup(name="n")})
        text = to_yaml(network)
        assert yaml.safe_load(text)["securityGroups"] == {"node": {"name": "n"}}


class TestRoundTrip:
    def test_vm(self):
        vm = _make_vm()
        assert from_dict(VM, to_dict(vm)) == vm

    def test_vm_json(self):
        vm = _make_vm()
        assert from_json(VM, to_json(vm)) == vm

    def test_vm_yaml(self):
        vm = _make_vm()
        assert from_yaml(VM, to_yaml(vm)) == vm

    def test_empty_vm(self):
        assert from_dict(VM, to_dict(VM())) == VM()

    def test_security_group(self):
        group = _make_security_group()
        decoded = from_json(SecurityGroup, to_json(group))
        assert decoded == group
        assert isinstance(decoded.tags, Tags)

    def test_ingress_rule_order_preserved(self):
        group = _make_security_group()
        group.ingress_rules.reverse()
        decoded = from_dict(SecurityGroup, to_dict(group))
        assert [r.description for r in decoded.ingress_rules] == [
            "Allow UDP", "Allow SSH", "Allow K8s API Server",
        ]

    def test_absent_and_empty_stay_distinct(self):
        rule = from_dict(IngressRule, to_dict(IngressRule(description="x", source="", destination=None)))
        assert rule.source == ""
        assert rule.destination is None

    def test_bare_subnets(self):
        subnets = _make_subnets()
        data = to_dict(subnets)
        assert isinstance(data, list)
        assert data[0]["role"] == "control-plane"
        decoded = from_dict(Subnets, data)
        assert decoded == subnets
        assert isinstance(decoded, Subnets)

    def test_bare_subnets_json(self):
        subnets = Subnets([SubnetSpec(name="a", role=SubnetRole.NODE)])
        assert from_json(Subnets, to_json(subnets)) == subnets

    def test_subnets_in_network_spec(self):
        spec = NetworkSpec(vnet=VnetSpec(name="demo-vnet", cidr_block="10.0.0.0/8"), subnets=_make_subnets())
        decoded = from_dict(NetworkSpec, to_dict(spec))
        assert decoded == spec
        assert isinstance(decoded.subnets, Subnets)
        assert decoded.subnets[0].role is SubnetRole.CONTROL_PLANE

    def test_image_variants(self):
        gallery = AzureSharedGalleryImage(
            subscription_id="sub", resource_group="rg", gallery="gal", name="img", version="1.0.0",
        )
        for image in (Image.by_id("/img"), Image.from_shared_gallery(gallery), Image(id="")):
            assert from_dict(Image, to_dict(image)) == image

    def test_image_with_two_variants_survives(self):
        image = Image(id="/img", marketplace=AzureMarketplaceImage("p", "o", "s", "v"))
        decoded = from_dict(Image, to_dict(image))
        assert decoded.selected() == ["id", "marketplace"]

    def test_network(self):
        network = Network(
            security_groups={
                SecurityGroupRole.CONTROL_PLANE: _make_security_group(),
                SecurityGroupRole.NODE: SecurityGroup(name="demo-node-nsg"),
            },
            api_server_lb=LoadBalancer(
                name="demo-public-lb", sku=SKU.STANDARD, backend_pool=BackendPool(name="demo-backendPool"),
            ),
            api_server_ip=PublicIP(name="demo-ip", ip_address="20.1.2.3", dns_name="demo.eastus.cloudapp.azure.com"),
        )
        decoded = from_dict(Network, to_dict(network))
        assert decoded == network
        assert set(decoded.security_groups) == {SecurityGroupRole.CONTROL_PLANE, SecurityGroupRole.NODE}

    def test_cluster_topology(self):
        topology = ClusterTopology(
            name="demo",
            resource_group="demo-rg",
            location="eastus",
            network_spec=NetworkSpec(vnet=VnetSpec(name="demo-vnet"), subnets=_make_subnets()),
            vms=[_make_vm(identity=VMIdentity.USER_ASSIGNED)],
            user_assigned_identities={"demo-cp-0": [UserAssignedIdentity("azure:///subscriptions/s/id")]},
        )
        assert from_yaml(ClusterTopology, to_yaml(topology)) == topology


class TestUnknownValues:
    def test_unknown_vm_state_is_preserved(self):
        vm = from_dict(VM, {"name": "vm", "vmState": "Starting"})
        assert vm.state == "Starting"
        assert not vm.state.is_known
        assert to_dict(vm)["vmState"] == "Starting"

    def test_unknown_identity_is_preserved(self):
        vm = from_dict(VM, {"identity": "SystemAssigned, UserAssigned"})
        assert to_dict(vm)["identity"] == "SystemAssigned, UserAssigned"

    def test_unknown_protocol_is_preserved(self):
        rule = from_dict(IngressRule, {"description": "icmp", "protocol": "Icmp"})
        assert rule.protocol == "Icmp"
        assert not rule.protocol.is_known

    def test_unknown_keys_are_ignored(self):
        vnet = from_dict(VnetSpec, {"name": "v", "addressSpace": ["10.0.0.0/8"]})
        assert vnet == VnetSpec(name="v")

    def test_null_on_required_field_keeps_default(self):
        vnet = from_dict(VnetSpec, {"name": "v", "tags": None})
        assert vnet.tags == {}


class TestDecodeErrors:
    def test_wrong_scalar_type(self):
        with pytest.raises(DecodeError, match="diskSizeGB"):
            from_dict(OSDisk, {"diskSizeGB": "big"})

    def test_bool_is_not_int(self):
        with pytest.raises(DecodeError):
            from_dict(OSDisk, {"diskSizeGB": True})

    def test_wrong_container_type(self):
        with pytest.raises(DecodeError, match="expected a list"):
            from_dict(SecurityGroup, {"ingressRule": {"description": "x"}})

    def test_non_mapping_document(self):
        with pytest.raises(DecodeError, match="expected a mapping"):
            from_dict(VM, ["not", "a", "vm"])

    def test_enum_must_be_string(self):
        with pytest.raises(DecodeError):
            from_dict(VM, {"vmState": 3})

    def test_invalid_json(self):
        with pytest.raises(DecodeError, match="invalid JSON"):
            from_json(VM, "{not json")

    def test_invalid_yaml(self):
        with pytest.raises(DecodeError, match="invalid YAML"):
            from_yaml(VM, "a: [unclosed")

    def test_json_output_is_valid(self):
        assert json.loads(to_json(_make_vm(), indent=2))["name"] == "demo-cp-0"
