"""Filters that decide whether a block device is processed further."""

from __future__ import annotations

import abc
from dataclasses import dataclass

from nodedisk.blockdevice import BlockDevice


class FilterInterface(abc.ABC):
    """What a filter implementation provides."""

    @abc.abstractmethod
    def start(self) -> None:
        """Prepare the filter for use."""

    @abc.abstractmethod
    def include(self, block_device: BlockDevice) -> bool:
        """True if the device matches the values to include."""

    @abc.abstractmethod
    def exclude(self, block_device: BlockDevice) -> bool:
        """True if the device does not match the values to exclude."""


@dataclass
class Filter:
    """A named filter that can be switched on or off."""

    name: str
    state: bool
    interface: FilterInterface

    def apply_filter(self, block_device: BlockDevice) -> bool:
        """True if the device passes both the include and the exclude check."""
        return self.interface.include(block_device) and self.interface.exclude(block_device)

    def start(self) -> None:
        self.interface.start()