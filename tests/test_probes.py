import queue
import threading

import pytest

from nodedisk.blockdevice import BlockDevice
from nodedisk.probes import EventMessage, Probe, ProbeInterface

FAKE_MODEL = "fake-model-number"
FAKE_SERIAL = "fake-serial-number"
FAKE_VENDOR = "fake-vendor"
MESSAGE = "This is a message from start method"


class FakeProbe(ProbeInterface):
    def __init__(self, channel=None):
        self.channel = channel

    def start(self):
        self.channel.put(MESSAGE)

    def fill_block_device_details(self, block_device):
        block_device.device_attributes.model = FAKE_MODEL
        block_device.device_attributes.serial = FAKE_SERIAL
        block_device.device_attributes.vendor = FAKE_VENDOR


def test_start_probe_sends_message():
    channel = queue.Queue()
    probe1 = Probe(name="probe1", state=True, interface=FakeProbe(channel))
    worker = threading.Thread(target=probe1.start)
    worker.start()
    try:
        received = channel.get(timeout=1)
    except queue.Empty:
        received = ""
    worker.join()
    assert received == MESSAGE


def test_fill_disk_details():
    probe1 = Probe(name="probe1", state=True, interface=FakeProbe())
    actual = BlockDevice()
    probe1.fill_block_device_details(actual)
    expected = BlockDevice()
    expected.device_attributes.model = FAKE_MODEL
    expected.device_attributes.serial = FAKE_SERIAL
    expected.device_attributes.vendor = FAKE_VENDOR
    assert actual == expected


def test_probe_priority_defaults_to_zero():
    probe1 = Probe(name="probe1", state=True, interface=FakeProbe())
    assert probe1.priority == 0


def test_event_message_holds_devices():
    device = BlockDevice(uuid="blockdevice-1")
    event = EventMessage(action="attach", devices=[device])
    assert event.devices[0].uuid == "blockdevice-1"
    assert EventMessage().devices == []


def test_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        ProbeInterface()