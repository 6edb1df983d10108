from nodedisk.api import (
    BLOCK_DEVICE_UNCLAIMED,
    KUBERNETES_HOST_NAME_LABEL,
    NDM_ACTIVE,
    NDM_BLOCK_DEVICE_KIND,
    NDM_DEVICE_TYPE_KEY,
    NDM_MANAGED_KEY,
    NDM_NOT_PARTITIONED,
    NDM_VERSION,
    OPENEBS_RECONCILE,
    BlockDeviceResource,
    BlockDeviceResourceList,
    DeviceCapacity,
    DeviceDetails,
    DeviceDevLink,
    DeviceSpec,
    DeviceStatus,
    ObjectMeta,
    TypeMeta,
)


def _sample() -> BlockDeviceResource:
    return BlockDeviceResource(
        type_meta=TypeMeta(kind=NDM_BLOCK_DEVICE_KIND, api_version=NDM_VERSION),
        metadata=ObjectMeta(
            name="fake-blockdevice-uid",
            labels={KUBERNETES_HOST_NAME_LABEL: "fake-host-name"},
        ),
        spec=DeviceSpec(
            path="dev/disk-fake-path",
            capacity=DeviceCapacity(storage=100000),
            details=DeviceDetails(
                model="disk-fake-model",
                serial="disk-fake-serial",
                vendor="disk-fake-vendor",
            ),
            dev_links=[DeviceDevLink(kind="by-id", links=["/dev/disk/by-id/x"])],
            partitioned=NDM_NOT_PARTITIONED,
        ),
        status=DeviceStatus(claim_state=BLOCK_DEVICE_UNCLAIMED, state=NDM_ACTIVE),
    )


def test_deep_copy_keeps_source_label_keys():
    resource = _sample()
    resource.metadata.labels[NDM_DEVICE_TYPE_KEY] = "blockdevice"
    resource.metadata.labels[NDM_MANAGED_KEY] = "true"
    resource.metadata.annotations[OPENEBS_RECONCILE] = "false"
    duplicate = resource.deep_copy()
    assert duplicate.metadata.labels == {
        "kubernetes.io/hostname": "fake-host-name",
        "ndm.io/blockdevice-type": "blockdevice",
        "ndm.io/managed": "true",
    }
    assert duplicate.metadata.annotations == {"openebs.io/reconcile": "false"}
    assert duplicate.type_meta.api_version == "openebs.io/v1alpha1"


def test_deep_copy_is_equal():
    original = _sample()
    assert original.deep_copy() == original


def test_deep_copy_is_independent():
    original = _sample()
    duplicate = original.deep_copy()
    duplicate.metadata.labels["extra"] = "value"
    duplicate.spec.dev_links[0].links.append("/dev/disk/by-id/y")
    duplicate.status.state = "Inactive"
    assert "extra" not in original.metadata.labels
    assert original.spec.dev_links[0].links == ["/dev/disk/by-id/x"]
    assert original.status.state == NDM_ACTIVE


def test_name_property_reads_metadata():
    assert _sample().name == "fake-blockdevice-uid"


def test_list_deep_copy_is_independent():
    listing = BlockDeviceResourceList(
        type_meta=TypeMeta(kind=NDM_BLOCK_DEVICE_KIND, api_version=NDM_VERSION),
        items=[_sample()],
    )
    duplicate = listing.deep_copy()
    assert duplicate == listing
    duplicate.items[0].spec.path = "/dev/other"
    duplicate.items.append(_sample())
    assert listing.items[0].spec.path == "dev/disk-fake-path"
    assert len(listing.items) == 1


def test_defaults_do_not_share_containers():
    first = BlockDeviceResource()
    second = BlockDeviceResource()
    first.metadata.labels["a"] = "b"
    first.spec.dev_links.append(DeviceDevLink(kind="by-id"))
    assert second.metadata.labels == {}
    assert second.spec.dev_links == []