"""In-memory description of a block device found on the host."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Keys used in a block device's node attributes.
HOST_NAME = "hostname"
NODE_NAME = "nodename"
ZONE_NAME = "zone"
REGION_NAME = "region"

# Kinds of block device.
SPARSE_BLOCK_DEVICE_TYPE = "sparse"
BLOCK_DEVICE_TYPE = "blockdevice"

# Availability states of a block device.
ACTIVE = "Active"
INACTIVE = "Inactive"
UNKNOWN = "Unknown"

# Claim phases of a block device.
CLAIMED = "Claimed"
RELEASED = "Released"
UNCLAIMED = "Unclaimed"

NodeAttribute = Dict[str, str]


class StorageEngine(str, enum.Enum):
    """A storage engine that may be using a block device."""

    CSTOR = "cstor"
    ZFS_LOCALPV = "zfs-localpv"
    MAYASTOR = "mayastor"
    LOCALPV = "localpv"
    JIVA = "jiva"

    def __str__(self) -> str:
        return self.value


@dataclass
class FileSystemInformation:
    """Filesystem and mount details of a block device."""

    file_system_uuid: str = ""
    file_system: str = ""
    mount_point: List[str] = field(default_factory=list)


@dataclass
class CapacityInformation:
    """Capacity of a block device, in bytes."""

    storage: int = 0


@dataclass
class DeviceAttribute:
    """Information reported by the device itself; any field may be empty."""

    device_type: str = ""
    drive_type: str = ""
    physical_block_size: int = 0
    logical_block_size: int = 0
    hardware_sector_size: int = 0
    wwn: str = ""
    vendor: str = ""
    model: str = ""
    serial: str = ""
    firmware_revision: str = ""
    compliance: str = ""


@dataclass
class DevLink:
    """One kind of device link (by-id, by-path, ...) and its links."""

    kind: str = ""
    links: List[str] = field(default_factory=list)


@dataclass
class TemperatureInformation:
    """Drive temperature in degrees Celsius."""

    temperature_data_valid: bool = False
    current_temperature: int = 0


@dataclass
class PartitionInformation:
    """Details of a block device that is a partition."""

    partition_number: int = 0
    partition_entry_uuid: str = ""
    partition_table_uuid: str = ""
    partition_table_type: str = ""


@dataclass
class DependentBlockDevices:
    """Paths of devices related to a block device."""

    parent: str = ""
    partitions: List[str] = field(default_factory=list)
    holders: List[str] = field(default_factory=list)
    slaves: List[str] = field(default_factory=list)


@dataclass
class DeviceUsage:
    """Whether a known storage engine uses the device, and which one."""

    in_use: bool = False
    used_by: Optional[StorageEngine] = None


@dataclass
class Status:
    """Availability state and claim phase of a block device."""

    state: str = ""
    claim_phase: str = ""


@dataclass
class BlockDevice:
    """Everything known about one block device on the system."""

    uuid: str = ""
    sys_path: str = ""
    dev_path: str = ""
    node_attributes: NodeAttribute = field(default_factory=dict)
    fs_info: FileSystemInformation = field(default_factory=FileSystemInformation)
    capacity: CapacityInformation = field(default_factory=CapacityInformation)
    dev_links: List[DevLink] = field(default_factory=list)
    device_attributes: DeviceAttribute = field(default_factory=DeviceAttribute)
    dev_use: DeviceUsage = field(default_factory=DeviceUsage)
    partition_info: PartitionInformation = field(default_factory=PartitionInformation)
    dependent_devices: DependentBlockDevices = field(default_factory=DependentBlockDevices)
    temperature_info: TemperatureInformation = field(default_factory=TemperatureInformation)
    status: Status = field(default_factory=Status)


# Cache of all block devices on the node, keyed by device path.
Hierarchy = Dict[str, BlockDevice]