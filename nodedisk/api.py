"""Cluster resource types that describe block devices, and their label keys."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List

from nodedisk.blockdevice import ACTIVE, INACTIVE, UNCLAIMED, UNKNOWN

FALSE_STRING = "false"
TRUE_STRING = "true"

NDM_BLOCK_DEVICE_KIND = "BlockDevice"

_KUBERNETES_LABEL_PREFIX = "kubernetes.io/"
_OPENEBS_LABEL_PREFIX = "openebs.io/"

HOST_NAME_KEY = "hostname"
NODE_NAME_KEY = "nodename"
KUBERNETES_HOST_NAME_LABEL = _KUBERNETES_LABEL_PREFIX + HOST_NAME_KEY
NDM_VERSION = _OPENEBS_LABEL_PREFIX + "v1alpha1"
OPENEBS_RECONCILE = _OPENEBS_LABEL_PREFIX + "reconcile"

NDM_NOT_PARTITIONED = "No"
NDM_PARTITIONED = "Yes"

NDM_ACTIVE = ACTIVE
NDM_INACTIVE = INACTIVE
NDM_UNKNOWN = UNKNOWN

NDM_DEVICE_TYPE_KEY = "ndm.io/blockdevice-type"
NDM_MANAGED_KEY = "ndm.io/managed"
NDM_ZPOOL_NAME = "ndm.io/zpool-name"

NDM_DEFAULT_DISK_TYPE = "disk"
NDM_DEFAULT_DEVICE_TYPE = "blockdevice"

BLOCK_DEVICE_UNCLAIMED = UNCLAIMED

# Seconds to wait before checking again for the block device resource type.
CRD_RETRY_INTERVAL = 10.0


@dataclass
class TypeMeta:
    """Kind and API version of a resource."""

    kind: str = ""
    api_version: str = ""


@dataclass
class ObjectMeta:
    """Name, namespace, labels and annotations of a resource."""

    name: str = ""
    namespace: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    resource_version: str = ""


@dataclass
class DeviceCapacity:
    """Size of a device and its sector sizes, all in bytes."""

    storage: int = 0
    physical_sector_size: int = 0
    logical_sector_size: int = 0


@dataclass
class DeviceDetails:
    """Static information about a device."""

    device_type: str = ""
    drive_type: str = ""
    logical_block_size: int = 0
    physical_block_size: int = 0
    hardware_sector_size: int = 0
    model: str = ""
    compliance: str = ""
    serial: str = ""
    vendor: str = ""
    firmware_revision: str = ""


@dataclass
class DeviceDevLink:
    """One kind of device link and the links of that kind."""

    kind: str = ""
    links: List[str] = field(default_factory=list)


@dataclass
class FileSystemInfo:
    """Filesystem type and mount point of a device."""

    fs_type: str = ""
    mountpoint: str = ""


@dataclass
class NodeAttribute:
    """Attributes of the node a device is attached to."""

    node_name: str = ""


@dataclass
class DeviceSpec:
    """Desired description of a block device resource."""

    node_attributes: NodeAttribute = field(default_factory=NodeAttribute)
    path: str = ""
    details: DeviceDetails = field(default_factory=DeviceDetails)
    capacity: DeviceCapacity = field(default_factory=DeviceCapacity)
    dev_links: List[DeviceDevLink] = field(default_factory=list)
    partitioned: str = ""
    file_system: FileSystemInfo = field(default_factory=FileSystemInfo)


@dataclass
class DeviceStatus:
    """Claim state and availability of a block device resource."""

    claim_state: str = ""
    state: str = ""


@dataclass
class BlockDeviceResource:
    """A block device as stored in the cluster."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: DeviceSpec = field(default_factory=DeviceSpec)
    status: DeviceStatus = field(default_factory=DeviceStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    def deep_copy(self) -> BlockDeviceResource:
        """Return a copy that shares no mutable state with this one."""
        return copy.deepcopy(self)


@dataclass
class BlockDeviceResourceList:
    """A list of block device resources."""

    type_meta: TypeMeta = field(default_factory=TypeMeta)
    items: List[BlockDeviceResource] = field(default_factory=list)

    def deep_copy(self) -> BlockDeviceResourceList:
        """Return a copy that shares no mutable state with this one."""
        return copy.deepcopy(self)