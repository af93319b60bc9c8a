"""Tag sets and the cluster ownership tag convention.

A resource belongs to a cluster when its tags carry the ownership marker
``sigs.k8s.io_cluster-api-provider-azure_cluster_<cluster name>`` with the
value ``owned``. All construction and parsing of that key goes through the
helpers in this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .enums import ResourceLifecycle, Role

logger = logging.getLogger(__name__)

NAME_PREFIX = "sigs.k8s.io_cluster-api-provider-azure_"
CLUSTER_TAG_PREFIX = NAME_PREFIX + "cluster_"
ROLE_TAG_KEY = NAME_PREFIX + "role"
NAME_TAG_KEY = "Name"


def cluster_tag_key(cluster_name: str) -> str:
    """Return the ownership tag key for ``cluster_name``."""
    if not cluster_name:
        raise ValueError("cluster name must not be empty")
    return f"{CLUSTER_TAG_PREFIX}{cluster_name}"


def parse_cluster_tag_key(key: str) -> str | None:
    """Return the cluster name encoded in an ownership tag key, or None."""
    if not key.startswith(CLUSTER_TAG_PREFIX):
        return None
    name = key[len(CLUSTER_TAG_PREFIX):]
    return name or None


class Tags(dict[str, str]):
    """Key/value annotations attached to an Azure resource."""

    def lifecycle(self, cluster_name: str) -> ResourceLifecycle | None:
        """The ownership marker value for ``cluster_name``, if tagged."""
        value = self.get(cluster_tag_key(cluster_name))
        if value is None:
            return None
        return ResourceLifecycle(value)

    def has_owned(self, cluster_name: str) -> bool:
        return self.lifecycle(cluster_name) is ResourceLifecycle.OWNED

    def has_shared(self, cluster_name: str) -> bool:
        return self.lifecycle(cluster_name) is ResourceLifecycle.SHARED

    def owning_clusters(self) -> list[str]:
        """Names of all clusters that mark this resource as owned."""
        owners = []
        for key, value in self.items():
            name = parse_cluster_tag_key(key)
            if name and value == ResourceLifecycle.OWNED:
                owners.append(name)
        return owners

    def has_matching_specified_tags(self, specified: dict[str, str]) -> bool:
        """True if every key/value in ``specified`` is present here."""
        return all(self.get(k) == v for k, v in specified.items())

    def difference(self, other: dict[str, str]) -> Tags:
        """Tags present here whose value is missing or different in ``other``."""
        return Tags({k: v for k, v in self.items() if other.get(k) != v})

    def merge(self, other: dict[str, str]) -> Tags:
        """Return a new tag set with ``other`` layered on top of this one."""
        merged = Tags(self)
        merged.update(other)
        return merged


@dataclass(frozen=True)
class BuildParams:
    """Inputs for :func:`build_cluster_tags`."""

    cluster_name: str
    lifecycle: ResourceLifecycle = ResourceLifecycle.OWNED
    name: str | None = None
    role: Role | str | None = None
    additional: dict[str, str] = field(default_factory=dict)


def build_cluster_tags(params: BuildParams) -> Tags:
    """Build the full tag set for a resource created for a cluster.

    The ownership marker is applied last so additional tags can never
    override it.
    """
    tags = Tags(params.additional)
    if params.name:
        tags[NAME_TAG_KEY] = params.name
    if params.role:
        tags[ROLE_TAG_KEY] = str(params.role)
    tags[cluster_tag_key(params.cluster_name)] = params.lifecycle.value
    return tags


def is_managed(identifier: str, tags: dict[str, str] | None, cluster_name: str) -> bool:
    """Decide whether a resource's lifecycle is managed by ``cluster_name``.

    An empty identifier means nothing has created the resource yet, so the
    cluster is responsible for it. A non-empty identifier without the
    ownership marker is an externally supplied resource and must be treated
    as read-only.
    """
    if not identifier:
        return True
    if not cluster_name:
        raise ValueError("cluster name must not be empty")
    managed = Tags(tags or {}).has_owned(cluster_name)
    if not managed:
        logger.debug(
            "Resource %s is not owned by cluster %s", identifier, cluster_name,
            extra={"cluster": cluster_name, "resource_id": identifier},
        )
    return managed
