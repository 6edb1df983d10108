"""Block device inventory, resource storage and sparse test devices for storage nodes."""

__version__ = "0.1.0"