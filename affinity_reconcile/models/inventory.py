"""Inventory dataclasses read from the virtualization platform.

These are snapshots. The platform owns the real objects; the engine only reads
them and requests mutations through a ``PlatformClient``.
"""

from dataclasses import dataclass, field
from enum import Enum


class GroupKind(Enum):
    """Which member type an affinity group holds."""

    HOST = "host"
    WORKLOAD = "workload"

    def __str__(self) -> str:
        return self.value


class StorageKind(Enum):
    """Concrete store or storage pool."""

    STORE = "store"
    POOL = "pool"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StorageLocation:
    """A store or storage pool.

    A store that belongs to a pool records the pool name; the pool is then the
    store's ultimate container for domain classification.
    """

    name: str
    kind: StorageKind = StorageKind.STORE
    pool: str | None = None

    @property
    def container_name(self) -> str:
        """Name of the outermost container (the pool, when there is one)."""
        return self.pool or self.name


@dataclass(frozen=True)
class Disk:
    """A virtual disk attached to a workload."""

    key: int
    location: StorageLocation
    label: str = ""

    @property
    def display_name(self) -> str:
        return self.label or f"Disk {self.key}"


@dataclass(frozen=True)
class Host:
    name: str
    cluster: str


@dataclass(frozen=True)
class Workload:
    """A virtual machine with its configuration location and ordered disks."""

    name: str
    cluster: str
    config_location: StorageLocation
    disks: tuple[Disk, ...] = ()

    @property
    def disk_count(self) -> int:
        return len(self.disks)


@dataclass(frozen=True)
class GroupRecord:
    """An affinity group as the platform reports it, before classification.

    ``member_type`` is the platform's own label for the member type
    (``"host"`` or ``"vm"``).
    """

    name: str
    member_type: str
    members: tuple[str, ...] = ()


@dataclass(frozen=True)
class AffinityGroup:
    """A classified affinity group with its domain resolved."""

    name: str
    kind: GroupKind
    domain: str
    members: frozenset[str] = field(default_factory=frozenset)

    def __contains__(self, member_name: str) -> bool:
        return member_name in self.members


@dataclass(frozen=True)
class Proposal:
    """One ranked placement proposal from the platform's recommendation call."""

    destinations: tuple[str, ...]
    reason: str = ""


@dataclass(frozen=True)
class TaskHandle:
    """Handle for an asynchronous platform task. The engine never waits on it."""

    task_id: str
    workload: str
    description: str = ""
