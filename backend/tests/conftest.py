"""
Test configuration and fixtures for the scanner tests.
"""

import json
from typing import Optional

import pytest

from fakes import ALL_SECURITY_HEADERS, FakeClock, FakeInternet, healthy_internet, make_config
from siteguard.core.config import ConfigStore, ScanConfig
from siteguard.scanner.probes.base import ScanContext
from siteguard.scanner.target import validate_target


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scan_config() -> ScanConfig:
    """Configured credentials, fast polling and pacing."""
    return make_config()


@pytest.fixture
def config_store(scan_config) -> ConfigStore:
    return ConfigStore(scan_config)


@pytest.fixture
def internet() -> FakeInternet:
    return healthy_internet()


@pytest.fixture
def make_context(scan_config, internet, fake_clock):
    """Build a ScanContext for a URL against the fake internet."""
    def _make(url: str = "https://example.com", config: Optional[ScanConfig] = None, **kwargs) -> ScanContext:
        kwargs.setdefault("transport", internet.transport)
        kwargs.setdefault("sleep", fake_clock.sleep)
        return ScanContext(target=validate_target(url), config=config or scan_config, **kwargs)
    return _make


@pytest.fixture
def headers_file(tmp_path):
    path = tmp_path / "headers.json"
    path.write_text(json.dumps(ALL_SECURITY_HEADERS), encoding="utf-8")
    return path
