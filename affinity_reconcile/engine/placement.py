"""
Resolve a storage target name to a concrete store.

A name is first looked up as a store. When no store has that name it is taken
as a storage pool and the platform's placement recommendation picks the store:
the first destination of the first proposal, with no re-ranking.
"""

import logging

from affinity_reconcile.exceptions import LookupFailure, ResolutionFailure
from affinity_reconcile.models.inventory import StorageLocation, Workload
from affinity_reconcile.platform.base import PlatformClient

logger = logging.getLogger(__name__)

DEFAULT_OPERATION_TYPE = "relocate"


class PlacementResolver:
    """Turns store or pool names into concrete stores for one platform client."""

    def __init__(self, client: PlatformClient, operation_type: str = DEFAULT_OPERATION_TYPE):
        self.client = client
        self.operation_type = operation_type

    def resolve(
        self,
        workload: Workload,
        target_name: str,
        operation_type: str | None = None,
    ) -> StorageLocation:
        """
        Resolve ``target_name`` for ``workload``.

        Args:
            workload: Workload that will be placed
            target_name: Store or storage pool name
            operation_type: Placement operation, defaults to the resolver's

        Returns:
            The concrete store to use

        Raises:
            ResolutionFailure: If the name is neither a store nor a pool, or the
                recommendation is rejected or empty
        """
        try:
            return self.client.find_store(target_name)
        except LookupFailure:
            logger.debug(f"{target_name} is not a store, asking for a recommendation in that pool")

        operation = operation_type or self.operation_type
        try:
            proposals = self.client.recommend(workload, target_name, operation)
        except LookupFailure as e:
            raise ResolutionFailure(
                workload.name, target_name, f"no store or storage pool named '{target_name}'"
            ) from e

        if not proposals:
            raise ResolutionFailure(workload.name, target_name, "recommendation returned no proposals")

        destinations = proposals[0].destinations
        if not destinations:
            raise ResolutionFailure(workload.name, target_name, "first proposal lists no destination")

        try:
            location = self.client.find_store(destinations[0])
        except LookupFailure as e:
            raise ResolutionFailure(
                workload.name, target_name, f"recommended store '{destinations[0]}' not found"
            ) from e

        logger.info(f"Pool {target_name} -> {location.name} for {workload.name} ({operation})")
        return location
