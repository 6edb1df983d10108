"""The disk manager controller: keeps block device resources in step with the node."""

from __future__ import annotations

import copy
import dataclasses
import logging
import os
import threading
from typing import Dict, Iterable, List, Optional

from nodedisk.api import (
    BLOCK_DEVICE_UNCLAIMED,
    FALSE_STRING,
    HOST_NAME_KEY,
    KUBERNETES_HOST_NAME_LABEL,
    NDM_BLOCK_DEVICE_KIND,
    NDM_INACTIVE,
    NDM_MANAGED_KEY,
    NDM_UNKNOWN,
    NDM_VERSION,
    OPENEBS_RECONCILE,
    BlockDeviceResource,
    BlockDeviceResourceList,
    ObjectMeta,
    TypeMeta,
)
from nodedisk.blockdevice import SPARSE_BLOCK_DEVICE_TYPE, BlockDevice, Hierarchy
from nodedisk.client import (
    AlreadyExistsError,
    ClientError,
    ConflictError,
    InMemoryClient,
)
from nodedisk.config import NDMOptions, NodeDiskManagerConfig, load_ndm_config
from nodedisk.deviceinfo import DeviceInfo, device_info_from_block_device
from nodedisk.filters import Filter
from nodedisk.probes import Probe
from nodedisk.sparse import (
    check_and_create_sparse_file,
    get_active_sparse_block_devices_uuid,
    get_sparse_block_device_uuid,
    get_sparse_file_count,
    get_sparse_file_dir,
    get_sparse_file_size,
    sparse_file_path,
)

logger = logging.getLogger(__name__)

ENV_NODE_NAME = "NODE_NAME"
ENV_NAMESPACE = "NAMESPACE"

_FALSY_VALUES = frozenset({"false", "0", "no", "off"})


def get_node_name() -> str:
    """Name of this node, from the environment; raise LookupError if unset."""
    try:
        return os.environ[ENV_NODE_NAME]
    except KeyError:
        raise LookupError("error getting node name") from None


def get_namespace() -> str:
    """Namespace the manager runs in, from the environment; raise LookupError if unset."""
    try:
        return os.environ[ENV_NAMESPACE]
    except KeyError:
        raise LookupError("error getting namespace") from None


def _is_falsy(value: str) -> bool:
    return value.strip().lower() in _FALSY_VALUES


def _merge_metadata(new: ObjectMeta, old: ObjectMeta) -> ObjectMeta:
    """Keep the old metadata, with labels and annotations patched from the new."""
    merged = copy.deepcopy(old)
    merged.labels.update(new.labels)
    merged.annotations.update(new.annotations)
    return merged


def _merge_block_device_data(
    new: BlockDeviceResource, old: BlockDeviceResource
) -> BlockDeviceResource:
    """Merge freshly discovered data into the stored resource.

    A claimed device only gets its node, capacity, path, links and state
    refreshed; an unclaimed one takes the whole new spec and status.
    """
    merged = old.deep_copy()
    merged.type_meta = copy.deepcopy(new.type_meta)
    merged.metadata = _merge_metadata(new.metadata, old.metadata)
    if merged.status.claim_state != BLOCK_DEVICE_UNCLAIMED:
        logger.debug("device %s is in use, updating only relevant fields", new.spec.path)
        merged.spec.node_attributes = copy.deepcopy(new.spec.node_attributes)
        merged.spec.capacity.storage = new.spec.capacity.storage
        merged.spec.path = new.spec.path
        merged.spec.dev_links = copy.deepcopy(new.spec.dev_links)
        merged.status.state = new.status.state
    else:
        merged.spec = copy.deepcopy(new.spec)
        merged.status = copy.deepcopy(new.status)
    return merged


class Controller:
    """Registers filters and probes and stores block device resources."""

    def __init__(
        self,
        client: Optional[InMemoryClient] = None,
        namespace: str = "",
        node_attributes: Optional[Dict[str, str]] = None,
        filters: Iterable[Filter] = (),
        probes: Iterable[Probe] = (),
    ) -> None:
        self.client = client if client is not None else InMemoryClient()
        self.namespace = namespace
        self.node_attributes: Dict[str, str] = dict(node_attributes or {})
        self.ndm_config: Optional[NodeDiskManagerConfig] = None
        self.filters: List[Filter] = list(filters)
        self.probes: List[Probe] = sorted(probes, key=lambda probe: probe.priority)
        self.bd_hierarchy: Hierarchy = {}
        self._lock = threading.Lock()

    # Configuration

    def set_ndm_config(self, opts: NDMOptions) -> None:
        """Load probe and filter settings; leave them unset if the file is unusable."""
        try:
            self.ndm_config = load_ndm_config(opts.config_file_path)
        except (OSError, ValueError) as exc:
            self.ndm_config = None
            logger.error("unable to set ndm config: %s", exc)

    # Block device resources

    def create_block_device(self, block_device: BlockDeviceResource) -> None:
        """Create the resource, or update it when it already exists.

        An update that conflicts is retried once; a second failure is only
        logged. Other client errors are raised.
        """
        device = block_device.deep_copy()
        device.metadata.namespace = self.namespace
        try:
            self.client.create(device)
        except AlreadyExistsError:
            pass
        except ClientError as exc:
            logger.error("Creation of blockdevice object failed: %s rname=%s", exc, device.name)
            raise
        else:
            logger.info("Created blockdevice object rname=%s", device.name)
            return

        # The device may have moved from another node; refresh the stored object.
        try:
            self.update_block_device(device, None)
            return
        except ConflictError:
            pass
        except ClientError as exc:
            logger.error("Updating of BlockDevice object failed: %s", exc)
            raise

        try:
            self.update_block_device(device, None)
        except ClientError:
            logger.error("Update to blockdevice object failed: %s", device.name)

    def update_block_device(
        self,
        block_device: BlockDeviceResource,
        old_block_device: Optional[BlockDeviceResource],
    ) -> None:
        """Merge block_device into the stored resource and save it.

        When old_block_device is None the stored resource is fetched first.
        Raises the client's error when it is absent or cannot be saved.
        """
        if old_block_device is None:
            try:
                old_block_device = self.client.get(
                    block_device.metadata.namespace, block_device.name
                )
            except ClientError as exc:
                logger.error(
                    "Failed to update block device: unable to get blockdevice object %s: %s",
                    block_device.name,
                    exc,
                )
                raise
        merged = _merge_block_device_data(block_device, old_block_device)
        try:
            self.client.update(merged)
        except ClientError as exc:
            logger.error("Unable to update blockdevice object: %s rname=%s", exc, merged.name)
            raise
        logger.info("Updated blockdevice object rname=%s", merged.name)

    def deactivate_block_device(self, block_device: BlockDeviceResource) -> None:
        """Mark the stored resource inactive; failures are only logged."""
        device = block_device.deep_copy()
        device.status.state = NDM_INACTIVE
        try:
            self.client.update(device)
        except ClientError as exc:
            logger.error("Unable to deactivate blockdevice: %s rname=%s", exc, device.name)
            return
        logger.info("Deactivated blockdevice rname=%s", device.name)

    def get_block_device(self, name: str) -> BlockDeviceResource:
        """Return the stored resource; raise NotFoundError if absent."""
        try:
            device = self.client.get(self.namespace, name)
        except ClientError as exc:
            logger.error("Unable to get blockdevice object: %s", exc)
            raise
        logger.info("Got blockdevice object: %s", name)
        return device

    def delete_block_device(self, name: str) -> None:
        """Remove the stored resource; failures are only logged."""
        device = BlockDeviceResource(metadata=ObjectMeta(name=name, namespace=self.namespace))
        try:
            self.client.delete(device)
        except ClientError as exc:
            logger.error("Unable to delete blockdevice object: %s rname=%s", exc, name)
            return
        logger.info("Deleted blockdevice object rname=%s", name)

    def list_block_device_resource(self, list_all: bool) -> BlockDeviceResourceList:
        """List managed resources, of this node only unless list_all is true.

        Resources annotated not to be reconciled are left out.
        """
        selector = f"{NDM_MANAGED_KEY}!={FALSE_STRING}"
        if not list_all:
            host = self.node_attributes.get(HOST_NAME_KEY, "")
            selector += f",{KUBERNETES_HOST_NAME_LABEL}={host}"
        items = [
            item
            for item in self.client.list(selector)
            if not (
                OPENEBS_RECONCILE in item.metadata.annotations
                and _is_falsy(item.metadata.annotations[OPENEBS_RECONCILE])
            )
        ]
        return BlockDeviceResourceList(
            type_meta=TypeMeta(kind=NDM_BLOCK_DEVICE_KIND, api_version=NDM_VERSION),
            items=items,
        )

    def get_existing_block_device_resource(
        self, block_device_list: BlockDeviceResourceList, uuid: str
    ) -> Optional[BlockDeviceResource]:
        """The resource named uuid in the list, or None."""
        return next((item for item in block_device_list.items if item.name == uuid), None)

    def deactivate_stale_block_device_resource(self, devices: Iterable[str]) -> None:
        """Deactivate this node's resources that are not among devices."""
        host = self.node_attributes.get(HOST_NAME_KEY, "")
        present = set(devices)
        present.update(get_active_sparse_block_devices_uuid(host))
        try:
            block_device_list = self.list_block_device_resource(False)
        except ClientError as exc:
            logger.error("%s", exc)
            return
        for item in block_device_list.items:
            if item.name not in present:
                self.deactivate_block_device(item)

    def push_block_device_resource(
        self,
        old_block_device: Optional[BlockDeviceResource],
        device_details: DeviceInfo,
    ) -> None:
        """Update old_block_device with device_details, or create a new resource."""
        details = dataclasses.replace(device_details, node_attributes=dict(self.node_attributes))
        device = details.to_device()
        if old_block_device is not None:
            self.update_block_device(device, old_block_device)
        else:
            self.create_block_device(device)

    def mark_block_device_status_to_unknown(self) -> None:
        """Set the state of all of this node's resources to unknown."""
        try:
            block_device_list = self.list_block_device_resource(False)
        except ClientError as exc:
            logger.error("%s", exc)
            return
        for item in block_device_list.items:
            device = item.deep_copy()
            device.status.state = NDM_UNKNOWN
            try:
                self.client.update(device)
            except ClientError as exc:
                logger.error("Unable to mark blockdevice %s unknown: %s", device.name, exc)
                continue
            logger.info("Status marked unknown for blockdevice object: %s", device.name)

    # Filters

    def add_new_filter(self, filter: Filter) -> None:
        with self._lock:
            self.filters = [*self.filters, filter]
        logger.info("configured %s : state %s", filter.name, "Enable" if filter.state else "Disable")

    def list_filter(self) -> List[Filter]:
        """The filters that are switched on."""
        with self._lock:
            return [item for item in self.filters if item.state]

    def apply_filter(self, block_device: BlockDevice) -> bool:
        """True if every active filter lets the device through."""
        for item in self.list_filter():
            if not item.apply_filter(block_device):
                logger.info("%s ignored by %s", block_device.dev_path, item.name)
                return False
        return True

    # Probes

    def add_new_probe(self, probe: Probe) -> None:
        with self._lock:
            self.probes = sorted([*self.probes, probe], key=lambda item: item.priority)
        logger.info("configured %s : state %s", probe.name, "Enable" if probe.state else "Disable")

    def list_probe(self) -> List[Probe]:
        """The probes that are switched on, in priority order."""
        with self._lock:
            return [item for item in self.probes if item.state]

    def fill_block_device_details(self, block_device: BlockDevice) -> None:
        """Let every active probe fill in details of the device."""
        block_device.node_attributes = dict(self.node_attributes)
        for probe in self.list_probe():
            probe.fill_block_device_details(block_device)
            logger.info("details filled by %s", probe.name)

    def new_device_info_from_block_device(self, block_device: BlockDevice) -> DeviceInfo:
        return device_info_from_block_device(block_device)

    # Sparse files

    def initialize_sparse_files(self) -> None:
        """Create the configured sparse files and their resources."""
        sparse_dir = get_sparse_file_dir()
        size = get_sparse_file_size()
        count = get_sparse_file_count()
        if not sparse_dir or size < 1 or count < 1:
            logger.info("No sparse file path/size provided. Skip creating sparse files.")
            return
        for index in range(count):
            sparse_file = sparse_file_path(sparse_dir, index)
            try:
                check_and_create_sparse_file(sparse_file, size)
            except OSError as exc:
                logger.info("Error creating sparse file %s: %s", sparse_file, exc)
                continue
            self.mark_sparse_block_device_state_active(sparse_file, size)

    def mark_sparse_block_device_state_active(
        self, sparse_file: str, sparse_file_size: int
    ) -> None:
        """Create or refresh the active resource of a sparse file."""
        host = self.node_attributes.get(HOST_NAME_KEY, "")
        details = DeviceInfo(
            uuid=get_sparse_block_device_uuid(host, sparse_file),
            node_attributes=dict(self.node_attributes),
            device_type=SPARSE_BLOCK_DEVICE_TYPE,
            path=sparse_file,
        )
        try:
            details.capacity = os.stat(sparse_file).st_size
        except OSError as exc:
            logger.info("Error fetching the size of sparse file: %s", exc)
            logger.error("Failed to create a block device CR for sparse file: %s", sparse_file)
            return
        logger.info("Updating the BlockDevice CR for sparse file: %s", details.uuid)
        try:
            self.create_block_device(details.to_device())
        except ClientError as exc:
            logger.error("Failed to store sparse block device %s: %s", details.uuid, exc)