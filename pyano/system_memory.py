"""Reporting how much of the machine's memory is free."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

_GIB = 1024.0 * 1024.0 * 1024.0

MemoryReader = Callable[[], "tuple[int, int]"]


def _read_system_memory() -> tuple[int, int]:
    info = psutil.virtual_memory()
    return info.total, info.total - info.available


@dataclass(frozen=True)
class MemoryStatus:
    total_gb: float
    available_gb: float
    used_gb: float
    usage_percentage: float


def _percentage(used: float, total: float) -> float:
    if total == 0:
        return math.nan
    return used / total * 100.0


class SystemMemory:
    """Reads total and used memory; ``reader`` returns ``(total_bytes, used_bytes)``."""

    def __init__(self, reader: MemoryReader | None = None) -> None:
        self._reader = reader if reader is not None else _read_system_memory

    def _read(self) -> tuple[int, int]:
        total, used = self._reader()
        return int(total), int(used)

    def get_available_gb(self) -> float:
        total, used = self._read()
        available = total - used
        logger.info("Memory stats (bytes): total=%d, used=%d, available=%d", total, used, available)
        available_gb = available / _GIB
        logger.info("Available memory: %.2f GB", available_gb)
        return available_gb

    def get_total_gb(self) -> float:
        total, _ = self._read()
        total_gb = total / _GIB
        logger.info("Total memory: %.2f GB", total_gb)
        return total_gb

    def get_used_gb(self) -> float:
        _, used = self._read()
        used_gb = used / _GIB
        logger.info("Used memory: %.2f GB", used_gb)
        return used_gb

    def get_usage_percentage(self) -> float:
        total, used = self._read()
        percentage = _percentage(used, total)
        logger.info("Memory usage: %.1f%%", percentage)
        return percentage

    def has_available_memory(self, required_gb: float) -> bool:
        """Whether at least ``required_gb`` gigabytes are free."""
        available = self.get_available_gb()
        logger.info(
            "Memory check: %.2f GB available, %.2f GB required", available, required_gb
        )
        return available >= required_gb

    def get_memory_status(self) -> MemoryStatus:
        total, used = self._read()
        status = MemoryStatus(
            total_gb=total / _GIB,
            available_gb=(total - used) / _GIB,
            used_gb=used / _GIB,
            usage_percentage=_percentage(used, total),
        )
        logger.info("Memory status: %s", status)
        return status

    def debug_memory_info(self) -> None:
        total, used = self._read()
        total_gb = total / _GIB
        used_gb = used / _GIB
        logger.info("=== Memory Debug Information ===")
        logger.info("Total memory (GB): %.2f", total_gb)
        logger.info("Used memory (GB): %.2f", used_gb)
        logger.info("Available memory (GB): %.2f", total_gb - used_gb)
        logger.info("Memory usage (%%): %.1f", _percentage(used_gb, total_gb))
        logger.info("==============================")