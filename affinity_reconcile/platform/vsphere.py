"""
vSphere platform client implemented with pyVmomi.

Maps vCenter objects onto the engine's inventory model:

- ClusterComputeResource -> cluster
- ClusterVmGroup / ClusterHostGroup -> GroupRecord ("vm" / "host")
- Datastore -> store, StoragePod -> storage pool
- StorageResourceManager.RecommendDatastores -> placement recommendation
- VirtualMachine.RelocateVM_Task -> relocation submission
- ReconfigureComputeResource_Task -> group membership edit
"""

import logging
import os
import re
from contextlib import contextmanager
from functools import wraps

from pyVim import connect
from pyVmomi import vim, vmodl

from affinity_reconcile.exceptions import (
    LookupFailure,
    PlatformError,
    PlatformNotAvailableError,
    ResolutionFailure,
)
from affinity_reconcile.models.inventory import (
    Disk,
    GroupRecord,
    Host,
    Proposal,
    StorageKind,
    StorageLocation,
    TaskHandle,
    Workload,
)
from affinity_reconcile.models.results import RelocationRequest
from affinity_reconcile.platform.base import PlatformClient
from affinity_reconcile.util.retry import TRANSIENT_FAULTS, RetryStrategy, log_retry, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD_ENV = "AFFINITY_RECONCILE_PASSWORD"

_DATASTORE_PATH = re.compile(r"^\[(?P<datastore>[^\]]+)\]")

_read_retry = retry_with_backoff(
    RetryStrategy.PLATFORM_API,
    retryable_exceptions=(OSError, *TRANSIENT_FAULTS),
    on_retry=log_retry,
)


@contextmanager
def platform_faults(action: str):
    """Re-raise transport errors and vCenter faults as PlatformError."""
    try:
        yield
    except vmodl.MethodFault as e:
        raise PlatformError(f"{action} rejected: {e.msg or type(e).__name__}") from e
    except OSError as e:
        raise PlatformError(f"{action} failed: {e}") from e


def _platform_read(func):
    """Retry transient faults, then report whatever is left as PlatformError."""
    retried = _read_retry(func)

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        with platform_faults(func.__name__.replace("_", " ")):
            return retried(self, *args, **kwargs)

    return wrapper


def datastore_name_from_path(path: str) -> str:
    """
    Extract the datastore name from a ``[datastore] folder/file`` path.

    Examples:
        >>> datastore_name_from_path("[alpha_ds01] web01/web01.vmx")
        'alpha_ds01'
    """
    match = _DATASTORE_PATH.match(path or "")
    if not match:
        raise ValueError(f"Not a datastore path: {path!r}")
    return match.group("datastore")


def group_member_type(group) -> str:
    """Platform-reported member type of a cluster group."""
    if isinstance(group, vim.cluster.VmGroup):
        return "vm"
    if isinstance(group, vim.cluster.HostGroup):
        return "host"
    return type(group).__name__


class VSphereClient(PlatformClient):
    """vCenter client. Connects on first use."""

    name = "vsphere"

    def __init__(self, config: dict):
        super().__init__(config)
        self.host = config.get("host")
        self.port = int(config.get("port", 443))
        self.username = config.get("username")
        self.password_env = config.get("password_env", DEFAULT_PASSWORD_ENV)
        self.verify_ssl = bool(config.get("verify_ssl", True))
        self.si = None

    def is_available(self) -> bool:
        return bool(self.host and self.username and os.environ.get(self.password_env))

    def _content(self):
        if self.si is None:
            self._connect()
        return self.si.RetrieveContent()

    def _connect(self) -> None:
        password = os.environ.get(self.password_env)
        if not (self.host and self.username and password):
            raise PlatformNotAvailableError("vsphere", self.password_env)

        logger.info(f"Connecting to vCenter: {self.host}")
        try:
            self.si = connect.SmartConnect(
                host=self.host,
                user=self.username,
                pwd=password,
                port=self.port,
                disableSslCertValidation=not self.verify_ssl,
            )
        except vim.fault.InvalidLogin as e:
            raise PlatformError(f"vCenter login failed for {self.username}: {e.msg}") from e
        except OSError as e:
            raise PlatformError(f"Failed to connect to vCenter {self.host}: {e}") from e

    def close(self) -> None:
        if self.si is not None:
            connect.Disconnect(self.si)
            self.si = None

    def _objects(self, vim_type) -> list:
        content = self._content()
        view = content.viewManager.CreateContainerView(content.rootFolder, [vim_type], True)
        try:
            return list(view.view)
        finally:
            view.Destroy()

    def _find(self, vim_type, kind: str, name: str):
        for obj in self._objects(vim_type):
            if obj.name == name:
                return obj
        raise LookupFailure(kind, name)

    def _cluster_obj(self, name: str):
        return self._find(vim.ClusterComputeResource, "cluster", name)

    def _vm_obj(self, cluster: str, name: str):
        for host in self._cluster_obj(cluster).host:
            for vm in host.vm:
                if vm.name == name:
                    return vm
        raise LookupFailure("workload", name)

    def _datastore_obj(self, name: str):
        return self._find(vim.Datastore, "store", name)

    @staticmethod
    def _location(datastore) -> StorageLocation:
        parent = datastore.parent
        pool = parent.name if isinstance(parent, vim.StoragePod) else None
        return StorageLocation(datastore.name, StorageKind.STORE, pool)

    def _workload(self, vm, cluster: str) -> Workload:
        """
        Build a Workload from a VirtualMachine.

        Raises:
            PlatformError: If the config path or a disk backing names no datastore
        """
        datastores = {ds.name: ds for ds in vm.datastore}
        try:
            config_name = datastore_name_from_path(vm.config.files.vmPathName)
        except ValueError as e:
            raise PlatformError(f"Cannot locate configuration of {vm.name}: {e}") from e
        if config_name in datastores:
            config_location = self._location(datastores[config_name])
        else:
            config_location = self._location(self._datastore_obj(config_name))

        disks = []
        for device in vm.config.hardware.device:
            if not isinstance(device, vim.vm.device.VirtualDisk):
                continue
            datastore = getattr(device.backing, "datastore", None)
            if datastore is None:
                raise PlatformError(f"Disk {device.key} of {vm.name} has no datastore backing")
            label = device.deviceInfo.label if device.deviceInfo else ""
            disks.append(Disk(key=device.key, location=self._location(datastore), label=label))
        return Workload(vm.name, cluster, config_location, tuple(disks))

    @_platform_read
    def get_cluster(self, name: str) -> str:
        return self._cluster_obj(name).name

    @_platform_read
    def list_hosts(self, cluster: str) -> list[Host]:
        return [Host(host.name, cluster) for host in self._cluster_obj(cluster).host]

    @_platform_read
    def list_workloads(self, cluster: str) -> list[Workload]:
        workloads = []
        for host in self._cluster_obj(cluster).host:
            for vm in host.vm:
                if vm.config is None or vm.config.template:
                    continue
                try:
                    workloads.append(self._workload(vm, cluster))
                except PlatformError as e:
                    logger.warning(f"Skipping {vm.name}: {e.message}")
        return workloads

    @_platform_read
    def get_workload(self, cluster: str, name: str) -> Workload:
        return self._workload(self._vm_obj(cluster, name), cluster)

    @_platform_read
    def list_groups(self, cluster: str) -> list[GroupRecord]:
        records = []
        for group in self._cluster_obj(cluster).configurationEx.group or []:
            if isinstance(group, vim.cluster.VmGroup):
                members = tuple(vm.name for vm in group.vm or [])
            elif isinstance(group, vim.cluster.HostGroup):
                members = tuple(host.name for host in group.host or [])
            else:
                members = ()
            records.append(GroupRecord(group.name, group_member_type(group), members))
        return records

    @_platform_read
    def find_store(self, name: str) -> StorageLocation:
        return self._location(self._datastore_obj(name))

    def recommend(self, workload: Workload, pool_name: str, operation_type: str) -> list[Proposal]:
        with platform_faults(f"Placement request for {workload.name}"):
            pod = self._find(vim.StoragePod, "storage pool", pool_name)
            vm = self._vm_obj(workload.cluster, workload.name)

            spec = vim.storageDrs.StoragePlacementSpec(
                type=operation_type,
                vm=vm,
                podSelectionSpec=vim.storageDrs.PodSelectionSpec(storagePod=pod),
                relocateSpec=vim.vm.RelocateSpec(),
            )
            try:
                result = self._content().storageResourceManager.RecommendDatastores(storageSpec=spec)
            except vmodl.MethodFault as e:
                raise ResolutionFailure(workload.name, pool_name, e.msg or type(e).__name__) from e

        proposals = []
        for recommendation in result.recommendations or []:
            destinations = tuple(
                action.destination.name
                for action in recommendation.action or []
                if getattr(action, "destination", None) is not None
            )
            proposals.append(
                Proposal(destinations, reason=recommendation.reasonText or recommendation.reason or "")
            )
        return proposals

    def submit_relocation(self, request: RelocationRequest) -> TaskHandle:
        with platform_faults(f"Relocation of {request.workload.name}"):
            vm = self._vm_obj(request.workload.cluster, request.workload.name)

            spec = vim.vm.RelocateSpec()
            spec.datastore = self._datastore_obj(request.config_destination.name)
            spec.disk = [
                vim.vm.RelocateSpec.DiskLocator(
                    diskId=destination.disk_key,
                    datastore=self._datastore_obj(destination.location.name),
                )
                for destination in request.disk_destinations
            ]
            task = vm.RelocateVM_Task(spec=spec)
        return TaskHandle(task._moId, request.workload.name, f"Relocate {request.workload.name}")

    def edit_group(self, cluster: str, group_name: str, add_member: str) -> TaskHandle:
        """
        Add one VM to a VM group.

        Raises:
            LookupFailure: If the group or the VM does not exist
            PlatformError: If the VM is already a member, or vCenter rejects the edit
        """
        with platform_faults(f"Edit of group {group_name}"):
            cluster_obj = self._cluster_obj(cluster)
            for group in cluster_obj.configurationEx.group or []:
                if group.name == group_name and isinstance(group, vim.cluster.VmGroup):
                    break
            else:
                raise LookupFailure("group", group_name)

            vm = self._vm_obj(cluster, add_member)
            members = list(group.vm or [])
            if any(member._moId == vm._moId for member in members):
                raise PlatformError(f"{add_member} is already a member of {group_name}")

            group.vm = members + [vm]
            spec = vim.cluster.ConfigSpecEx(groupSpec=[vim.cluster.GroupSpec(operation="edit", info=group)])
            task = cluster_obj.ReconfigureComputeResource_Task(spec=spec, modify=True)
        return TaskHandle(task._moId, add_member, f"Add {add_member} to {group_name}")
