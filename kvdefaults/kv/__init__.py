"""Raw store backends."""

from .base import RAW_TYPES, RawStore, check_raw
from .disk import Disk
from .memory import Memory

__all__ = ["Disk", "Memory", "RAW_TYPES", "RawStore", "check_raw"]
