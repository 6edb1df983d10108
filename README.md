# nodedisk

`nodedisk` keeps an inventory of the block devices attached to a storage
node. It describes each device and turns that description into a block
device resource. It then stores the resources through a client, keeps them in
step with what the node reports, and can stand sparse files in for disks.

## Installation

```
pip install nodedisk
```

To run the tests, install the test extra:

```
pip install "nodedisk[test]"
```

## Modules

- `nodedisk.blockdevice` describes a device as the host sees it.
  `BlockDevice` is built from `DeviceAttribute`, `FileSystemInformation`,
  `CapacityInformation`, `DevLink`, `PartitionInformation`,
  `DependentBlockDevices`, `TemperatureInformation`, `DeviceUsage` and
  `Status`. The module also defines the `StorageEngine` enumeration and the
  state constants `ACTIVE`, `INACTIVE`, `UNKNOWN`, `CLAIMED`, `RELEASED` and
  `UNCLAIMED`.
- `nodedisk.config` holds the probe and filter configuration.
  - `parse_ndm_config(data)` parses text or bytes. It tries JSON first and
    falls back to YAML.
  - `load_ndm_config(path)` reads and parses a file.
  - Both return a `NodeDiskManagerConfig` made of `ProbeConfig` and
    `FilterConfig` entries.
  - They raise `OSError` when the file cannot be read and `ValueError` when
    the content is invalid.
  - `try_load_ndm_config(path)` returns `None` instead of raising.
  - `NDMOptions` carries the configuration file path. Its default is
    `/host/node-disk-manager.config`.
- `nodedisk.api` is the resource model: `BlockDeviceResource`,
  `BlockDeviceResourceList`, `TypeMeta`, `ObjectMeta`, `DeviceSpec`,
  `DeviceStatus`, `DeviceDetails`, `DeviceCapacity`, `DeviceDevLink`,
  `FileSystemInfo` and `NodeAttribute`. It also holds the label and
  annotation keys, such as `ndm.io/managed`, `kubernetes.io/hostname` and
  `openebs.io/reconcile`.
- `nodedisk.deviceinfo` turns device details into a resource.
  - `DeviceInfo` holds the flattened details of one device.
  - `DeviceInfo.to_device()` builds an unclaimed, active `BlockDeviceResource`
    from it.
  - `device_info_from_block_device()` builds a `DeviceInfo` from a
    `BlockDevice`. It keeps the by-id and by-path links and only the first
    mount point.
- `nodedisk.client` stores resources.
  - `InMemoryClient` keeps them by namespace and name, and supports `create`,
    `get`, `update`, `delete` and `list` by label selector.
  - It raises `NotFoundError`, `AlreadyExistsError` and `ConflictError`, all
    of which are subclasses of `ClientError`.
  - `parse_label_selector()` and `selector_matches()` handle selectors such as
    `a!=false,b=c`.
- `nodedisk.filters` provides `Filter`, which wraps a `FilterInterface`. A
  device passes when both `include` and `exclude` return true.
- `nodedisk.probes` provides `Probe`, which wraps a `ProbeInterface` and has a
  priority. It also defines the `EventMessage` record.
- `nodedisk.sparse` handles sparse files that stand in for disks. It reads the
  `SPARSE_FILE_DIR`, `SPARSE_FILE_SIZE` and `SPARSE_FILE_COUNT` environment
  variables.
  - The default size, and also the minimum, is 1 GiB.
  - The default count is 1.
  - Files are named `<n>-ndm-sparse.img`.
  - A device identifier is `sparse-` followed by the MD5 of the host name and
    the file path.
- `nodedisk.devicelist` provides `format_device_list()`, which renders a
  resource list as a fixed-width table. It prints `No disk resource present.`
  when the list is empty.
- `nodedisk.controller` provides `Controller`, which ties the other modules
  together:
  - It creates, updates, deactivates, deletes and lists resources.
  - When it updates a claimed device, it refreshes only the node, capacity,
    path, links and state.
  - It registers filters, and registers probes in priority order.
  - It loads the configuration.
  - It creates the sparse devices.
  - `get_node_name()` and `get_namespace()` read `NODE_NAME` and `NAMESPACE`
    and raise `LookupError` when either is unset.

## Example

```python
from nodedisk.client import InMemoryClient
from nodedisk.controller import Controller
from nodedisk.deviceinfo import DeviceInfo
from nodedisk.devicelist import format_device_list

controller = Controller(
    namespace="openebs",
    client=InMemoryClient(),
    node_attributes={"hostname": "node-1", "nodename": "node-1"},
)

info = DeviceInfo(uuid="blockdevice-example", path="/dev/sdb", capacity=10737418240)
controller.push_block_device_resource(None, info)

print(format_device_list(controller.list_block_device_resource(False)))
```

## Configuration file

```yaml
probeconfigs:
  - key: udev-probe
    name: udev probe
    state: true
filterconfigs:
  - key: os-disk-exclude-filter
    name: os disk exclude filter
    state: true
    exclude: /,/etc/hosts,/boot
```

## What it does not do

- It has no command-line program and no long-running daemon. You use it as a
  library.
- It does not talk to a cluster API server. Resources are kept only in the
  process, in `InMemoryClient`.
- It does not discover devices. It ships no concrete probes or filters (such
  as a udev probe or an OS-disk filter), and it does not export metrics. You
  supply your own implementations of `ProbeInterface` and `FilterInterface`.