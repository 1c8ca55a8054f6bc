"""
affinity-reconcile: affinity-aware placement and balance reconciliation.

Keeps workloads, hosts and storage in a virtualization cluster aligned with
named affinity domains (sites, zones) expressed through affinity groups and
name prefixes.

Main features:
- Balance report: workload spread across domains against a proportional target
- Mismatch detection: workload storage outside its assigned domain
- Remediation: per-disk relocation plans submitted as one asynchronous task
- Rogue assignment: default workload-group for ungrouped workloads
"""

__version__ = "0.1.0"
