"""
Abstract base class for virtualization platform clients.
"""

from abc import ABC, abstractmethod

from affinity_reconcile.models.inventory import (
    GroupRecord,
    Host,
    Proposal,
    StorageLocation,
    TaskHandle,
    Workload,
)
from affinity_reconcile.models.results import RelocationRequest


class PlatformClient(ABC):
    """Abstract base class for platform clients.

    A client is an explicit handle: engine components receive it in their
    constructors and never look up a shared connection.
    """

    name = "base"

    def __init__(self, config: dict):
        """
        Initialize platform client.

        Args:
            config: Platform configuration dict (the ``platform`` section)
        """
        self.config = config

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the client is properly configured and can be used.

        Returns:
            True if client can be used, False otherwise
        """
        pass

    @abstractmethod
    def get_cluster(self, name: str) -> str:
        """
        Return the canonical cluster name.

        Raises:
            LookupFailure: If the cluster does not exist
        """
        pass

    @abstractmethod
    def list_hosts(self, cluster: str) -> list[Host]:
        pass

    @abstractmethod
    def list_workloads(self, cluster: str) -> list[Workload]:
        pass

    @abstractmethod
    def get_workload(self, cluster: str, name: str) -> Workload:
        """
        Return one workload by name.

        Raises:
            LookupFailure: If no workload with that name is in the cluster
        """
        pass

    @abstractmethod
    def list_groups(self, cluster: str) -> list[GroupRecord]:
        """Return the cluster's affinity groups with the platform-reported member type."""
        pass

    @abstractmethod
    def find_store(self, name: str) -> StorageLocation:
        """
        Resolve a concrete store by exact name.

        Raises:
            LookupFailure: If no store has that name
        """
        pass

    @abstractmethod
    def recommend(self, workload: Workload, pool_name: str, operation_type: str) -> list[Proposal]:
        """
        Ask the platform where in ``pool_name`` the workload should go.

        Args:
            workload: Workload being placed
            pool_name: Storage pool to choose from
            operation_type: Placement operation (e.g. "relocate")

        Returns:
            Ranked proposals, best first

        Raises:
            LookupFailure: If the pool does not exist
            ResolutionFailure: If the platform rejects the request
        """
        pass

    @abstractmethod
    def submit_relocation(self, request: RelocationRequest) -> TaskHandle:
        """Submit one asynchronous relocation task. Must not wait for completion."""
        pass

    @abstractmethod
    def edit_group(self, cluster: str, group_name: str, add_member: str) -> TaskHandle:
        """Add one workload to a workload-group. Refuses an existing member with PlatformError."""
        pass

    def close(self) -> None:
        """Release any session held by the client."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
