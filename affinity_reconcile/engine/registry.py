"""
Affinity group discovery and classification.

Fetches a cluster's affinity groups from the platform, decides whether each is
a host-group or a workload-group from the member type the platform reports,
and derives each group's domain from its name.
"""

import logging

from affinity_reconcile.models.inventory import AffinityGroup, GroupKind, GroupRecord
from affinity_reconcile.naming import NamingConvention
from affinity_reconcile.platform.base import PlatformClient

logger = logging.getLogger(__name__)

MEMBER_TYPES = {
    "host": GroupKind.HOST,
    "hostsystem": GroupKind.HOST,
    "clusterhostgroup": GroupKind.HOST,
    "vm": GroupKind.WORKLOAD,
    "virtualmachine": GroupKind.WORKLOAD,
    "clustervmgroup": GroupKind.WORKLOAD,
}


def classify_group(record: GroupRecord, naming: NamingConvention) -> AffinityGroup | None:
    """
    Turn a raw platform group into an AffinityGroup.

    Returns None for groups whose member type is neither hosts nor workloads.
    """
    kind = MEMBER_TYPES.get(record.member_type.lower())
    if kind is None:
        return None
    return AffinityGroup(
        name=record.name,
        kind=kind,
        domain=naming.group_domain(record.name),
        members=frozenset(record.members),
    )


class GroupRegistry:
    """
    Classified affinity groups of one cluster.

    Example:
        >>> registry = GroupRegistry.load(client, "prod")
        >>> registry.known_domains
        frozenset({'alpha', 'beta'})
        >>> registry.group_for_workload("web01").domain
        'alpha'
    """

    def __init__(self, cluster: str, groups: list[AffinityGroup]):
        self.cluster = cluster
        self.groups = tuple(groups)
        self._membership: dict[str, AffinityGroup] = {}
        for group in self.workload_groups:
            for member in sorted(group.members):
                existing = self._membership.get(member)
                if existing is None:
                    self._membership[member] = group
                elif existing.name != group.name:
                    logger.warning(
                        f"{member} is in several workload-groups "
                        f"({existing.name}, {group.name}); using {existing.name}"
                    )

    @classmethod
    def load(
        cls,
        client: PlatformClient,
        cluster: str,
        naming: NamingConvention | None = None,
    ) -> "GroupRegistry":
        """Fetch and classify every affinity group in ``cluster``."""
        naming = naming or NamingConvention()
        groups = []
        for record in client.list_groups(cluster):
            group = classify_group(record, naming)
            if group is None:
                logger.warning(
                    f"Skipping group {record.name}: unknown member type '{record.member_type}'"
                )
                continue
            groups.append(group)
        logger.debug(f"Loaded {len(groups)} affinity group(s) for cluster {cluster}")
        return cls(cluster, groups)

    @property
    def host_groups(self) -> tuple[AffinityGroup, ...]:
        return tuple(group for group in self.groups if group.kind is GroupKind.HOST)

    @property
    def workload_groups(self) -> tuple[AffinityGroup, ...]:
        return tuple(group for group in self.groups if group.kind is GroupKind.WORKLOAD)

    @property
    def known_domains(self) -> frozenset[str]:
        """Domains that have at least one workload-group."""
        return frozenset(group.domain for group in self.workload_groups)

    def group_for_workload(self, workload_name: str) -> AffinityGroup | None:
        """Return the workload's workload-group, or None when it has none."""
        return self._membership.get(workload_name)

    def domain_for_workload(self, workload_name: str) -> str | None:
        group = self.group_for_workload(workload_name)
        return group.domain if group else None

    def workload_group_for_domain(self, domain: str) -> AffinityGroup | None:
        """First workload-group (by name) of ``domain``."""
        candidates = sorted(
            (group for group in self.workload_groups if group.domain == domain),
            key=lambda group: group.name,
        )
        return candidates[0] if candidates else None
