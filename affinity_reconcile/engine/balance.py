"""
Proportional balance of workloads across affinity domains.

Every workload has equal weight. Each domain's target is its share of hosts
times the cluster-wide workloads-per-host ratio, and its deviation is how far
its actual workload count is from that target, in percent. The report is
descriptive only; nothing is moved.
"""

from affinity_reconcile.engine.registry import GroupRegistry
from affinity_reconcile.exceptions import DivisionUndefined
from affinity_reconcile.models.results import BalanceReport, DomainBalance


def deviation_percent(workload_count: int, target: int) -> float | None:
    """Return ``(count - target) / target * 100``, or None when target is 0."""
    if target == 0:
        return None
    return (workload_count - target) / target * 100


def calculate_balance(registry: GroupRegistry) -> BalanceReport:
    """
    Compute the balance report for a cluster's affinity groups.

    Hosts are counted from host-groups and workloads from workload-groups, each
    member counted once per domain. Totals are the sums over domains.

    Args:
        registry: Classified groups of the cluster

    Returns:
        BalanceReport with one entry per domain, sorted by domain name

    Raises:
        DivisionUndefined: If there are no hosts in any host-group

    Example:
        >>> report = calculate_balance(registry)
        >>> report.get("alpha").status
        '+25.0%'
    """
    hosts: dict[str, set[str]] = {}
    workloads: dict[str, set[str]] = {}
    for group in registry.host_groups:
        hosts.setdefault(group.domain, set()).update(group.members)
    for group in registry.workload_groups:
        workloads.setdefault(group.domain, set()).update(group.members)

    domains = sorted(set(hosts) | set(workloads))
    host_counts = {domain: len(hosts.get(domain, ())) for domain in domains}
    workload_counts = {domain: len(workloads.get(domain, ())) for domain in domains}

    total_hosts = sum(host_counts.values())
    total_workloads = sum(workload_counts.values())
    if total_hosts == 0:
        raise DivisionUndefined("no hosts in any host-group")

    per_host_target = total_workloads / total_hosts

    entries = []
    for domain in domains:
        target = round(per_host_target * host_counts[domain])
        entries.append(
            DomainBalance(
                domain=domain,
                host_count=host_counts[domain],
                workload_count=workload_counts[domain],
                target=target,
                deviation_percent=deviation_percent(workload_counts[domain], target),
            )
        )

    return BalanceReport(
        cluster=registry.cluster,
        domains=tuple(entries),
        total_hosts=total_hosts,
        total_workloads=total_workloads,
        per_host_target=per_host_target,
    )
