"""Probes that fill in details of discovered block devices."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import List

from nodedisk.blockdevice import BlockDevice


@dataclass
class EventMessage:
    """An event such as attach or detach, with the devices it concerns."""

    action: str = ""
    devices: List[BlockDevice] = field(default_factory=list)


class ProbeInterface(abc.ABC):
    """What a probe implementation provides."""

    @abc.abstractmethod
    def start(self) -> None:
        """Prepare the probe for use."""

    @abc.abstractmethod
    def fill_block_device_details(self, block_device: BlockDevice) -> None:
        """Fill in the details of block_device that this probe knows."""


@dataclass
class Probe:
    """A named probe with a priority; lower priorities run first."""

    name: str
    state: bool
    interface: ProbeInterface
    priority: int = 0

    def start(self) -> None:
        self.interface.start()

    def fill_block_device_details(self, block_device: BlockDevice) -> None:
        self.interface.fill_block_device_details(block_device)