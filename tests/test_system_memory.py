import logging

import pytest

from pyano.system_memory import MemoryStatus, SystemMemory

GIB = 1024**3


def fixed(total_gib, used_gib):
    return SystemMemory(reader=lambda: (total_gib * GIB, used_gib * GIB))


def test_totals_in_gigabytes():
    memory = fixed(16, 4)
    assert memory.get_total_gb() == pytest.approx(16)
    assert memory.get_used_gb() == pytest.approx(4)


def test_available_plus_used_is_total():
    memory = fixed(16, 4)
    assert memory.get_available_gb() + memory.get_used_gb() == pytest.approx(
        memory.get_total_gb()
    )


def test_usage_percentage_bounds():
    assert fixed(8, 0).get_usage_percentage() == pytest.approx(0.0)
    assert fixed(8, 8).get_usage_percentage() == pytest.approx(100.0)


def test_has_available_memory_threshold():
    memory = fixed(16, 4)
    available = memory.get_available_gb()
    assert memory.has_available_memory(available) is True
    assert memory.has_available_memory(available + 0.5) is False
    assert memory.has_available_memory(0.0) is True


def test_memory_status_is_consistent():
    memory = fixed(32, 8)
    status = memory.get_memory_status()
    assert isinstance(status, MemoryStatus)
    assert status.total_gb == pytest.approx(32)
    assert status.available_gb + status.used_gb == pytest.approx(status.total_gb)
    assert status.available_gb == pytest.approx(memory.get_available_gb())
    assert status.usage_percentage == pytest.approx(memory.get_usage_percentage())


def test_debug_memory_info_logs_report(caplog):
    with caplog.at_level(logging.INFO, logger="pyano.system_memory"):
        fixed(16, 4).debug_memory_info()
    assert "=== Memory Debug Information ===" in caplog.text
    assert "Total memory (GB): 16.00" in caplog.text


def test_real_system_memory_is_sane():
    status = SystemMemory().get_memory_status()
    assert status.total_gb > 0
    assert 0 <= status.usage_percentage <= 100
    assert status.available_gb <= status.total_gb