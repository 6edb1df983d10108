"""Text table of block device resources."""

from __future__ import annotations

from typing import Iterable

from nodedisk.api import BlockDeviceResource, BlockDeviceResourceList

NO_DEVICES_MESSAGE = "No disk resource present."

_COLUMNS = (
    ("NAME", 45),
    ("PATH", 10),
    ("CAPACITY", 15),
    ("STATUS", 10),
    ("SERIAL", 25),
    ("MODEL", 20),
    ("VENDOR", 20),
)

_ESCAPES = str.maketrans(
    {
        "\0": "\ufffd",
        '"': "&#34;",
        "&": "&amp;",
        "'": "&#39;",
        "+": "&#43;",
        "<": "&lt;",
        ">": "&gt;",
    }
)


def _row(values: Iterable[str]) -> str:
    return "".join(
        f"{value:<{width}}".translate(_ESCAPES)
        for value, (_, width) in zip(values, _COLUMNS)
    )


def _device_values(item: BlockDeviceResource) -> tuple:
    return (
        item.metadata.name,
        item.spec.path,
        str(item.spec.capacity.storage),
        item.status.state,
        item.spec.details.serial,
        item.spec.details.model,
        item.spec.details.vendor,
    )


def format_device_list(block_device_list: BlockDeviceResourceList) -> str:
    """Render the resources as a fixed-width table, one line per device.

    Markup-significant characters in the values are escaped.
    """
    if not block_device_list.items:
        return NO_DEVICES_MESSAGE + "\n"
    lines = [_row(title for title, _ in _COLUMNS)]
    lines.extend(_row(_device_values(item)) for item in block_device_list.items)
    return "\n".join(lines) + "\n"