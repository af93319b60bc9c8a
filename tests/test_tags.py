"""Tests for tag sets and the ownership convention."""

import pytest

from azure_cluster_topology.topology.enums import ResourceLifecycle, Role
from azure_cluster_topology.topology.tags import (
    NAME_TAG_KEY,
    ROLE_TAG_KEY,
    BuildParams,
    Tags,
    build_cluster_tags,
    cluster_tag_key,
    is_managed,
    parse_cluster_tag_key,
)

DEMO_KEY = "sigs.k8s.io_cluster-api-provider-azure_cluster_demo"


class TestClusterTagKey:
    def test_key_format(self):
        assert cluster_tag_key("demo") == DEMO_KEY

    def test_empty_cluster_name_rejected(self):
        with pytest.raises(ValueError):
            cluster_tag_key("")

    def test_parse(self):
        assert parse_cluster_tag_key(DEMO_KEY) == "demo"

    def test_parse_other_keys(self):
        assert parse_cluster_tag_key("Name") is None
        assert parse_cluster_tag_key(ROLE_TAG_KEY) is None
        assert parse_cluster_tag_key("sigs.k8s.io_cluster-api-provider-azure_cluster_") is None


class TestTags:
    def test_has_owned(self):
        tags = Tags({DEMO_KEY: "owned"})
        assert tags.has_owned("demo")
        assert not tags.has_owned("other")
        assert not tags.has_shared("demo")

    def test_shared_is_not_owned(self):
        tags = Tags({DEMO_KEY: "shared"})
        assert tags.has_shared("demo")
        assert not tags.has_owned("demo")

    def test_unexpected_marker_value_is_not_owned(self):
        tags = Tags({DEMO_KEY: "borrowed"})
        assert not tags.has_owned("demo")
        assert tags.lifecycle("demo") == "borrowed"
        assert not tags.lifecycle("demo").is_known

    def test_lifecycle_absent(self):
        assert Tags().lifecycle("demo") is None

    def test_owning_clusters(self):
        tags = Tags({
            DEMO_KEY: "owned",
            cluster_tag_key("other"): "shared",
            cluster_tag_key("third"): "owned",
            "env": "prod",
        })
        assert sorted(tags.owning_clusters()) == ["demo", "third"]

    def test_has_matching_specified_tags(self):
        tags = Tags({"env": "prod", "team": "infra"})
        assert tags.has_matching_specified_tags({"env": "prod"})
        assert tags.has_matching_specified_tags({})
        assert not tags.has_matching_specified_tags({"env": "dev"})
        assert not tags.has_matching_specified_tags({"owner": "x"})

    def test_difference(self):
        tags = Tags({"a": "1", "b": "2", "c": "3"})
        diff = tags.difference({"a": "1", "b": "changed"})
        assert diff == {"b": "2", "c": "3"}
        assert isinstance(diff, Tags)

    def test_merge_does_not_mutate(self):
        tags = Tags({"a": "1"})
        merged = tags.merge({"a": "2", "b": "3"})
        assert merged == {"a": "2", "b": "3"}
        assert tags == {"a": "1"}


class TestBuildClusterTags:
    def test_full(self):
        tags = build_cluster_tags(BuildParams(
            cluster_name="demo",
            name="demo-vnet",
            role=Role.CONTROL_PLANE,
            additional={"env": "prod"},
        ))
        assert tags == {
            "env": "prod",
            NAME_TAG_KEY: "demo-vnet",
            ROLE_TAG_KEY: "control-plane",
            DEMO_KEY: "owned",
        }

    def test_minimal(self):
        tags = build_cluster_tags(BuildParams(cluster_name="demo"))
        assert tags == {DEMO_KEY: "owned"}

    def test_shared_lifecycle(self):
        tags = build_cluster_tags(BuildParams(cluster_name="demo", lifecycle=ResourceLifecycle.SHARED))
        assert tags.has_shared("demo")

    def test_additional_tags_cannot_override_marker(self):
        tags = build_cluster_tags(BuildParams(cluster_name="demo", additional={DEMO_KEY: "shared"}))
        assert tags.has_owned("demo")


class TestIsManaged:
    def test_empty_identifier_is_managed(self):
        assert is_managed("", {}, "demo")
        assert is_managed("", None, "demo")
        assert is_managed("", {cluster_tag_key("other"): "owned"}, "demo")

    def test_existing_without_marker_is_unmanaged(self):
        assert not is_managed("/subscriptions/x/vnet-1", {}, "demo")

    def test_existing_with_marker_is_cluster_scoped(self):
        tags = {DEMO_KEY: "owned"}
        assert is_managed("/subscriptions/x/vnet-1", tags, "demo")
        assert not is_managed("/subscriptions/x/vnet-1", tags, "other")

    def test_shared_marker_is_unmanaged(self):
        assert not is_managed("/subscriptions/x/vnet-1", {DEMO_KEY: "shared"}, "demo")

    def test_blank_cluster_name_rejected(self):
        with pytest.raises(ValueError):
            is_managed("/subscriptions/x/vnet-1", {DEMO_KEY: "owned"}, "")

    def test_empty_identifier_managed_without_cluster_name(self):
        assert is_managed("", {}, "")
