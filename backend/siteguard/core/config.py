"""
Scanner Configuration

``ScanConfig`` is an immutable value threaded into every scan.  The
process-wide current value lives in a :class:`ConfigStore`; replacing it
only affects scans that start afterwards, because each scan takes a
snapshot of ``current()`` once at start.

Environment variables (prefix ``SITEGUARD_``) are read through
:class:`Settings`, and the camelCase JSON document shape used by
config files can be loaded and saved with :func:`load_config_file`
and :func:`save_config_file`.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

MASK = "***"

PLACEHOLDER_KEYS = frozenset({
    "",
    "YOUR_GOOGLE_SAFE_BROWSING_API_KEY",
    "YOUR_VIRUSTOTAL_API_KEY",
})


def is_configured(key: Optional[str]) -> bool:
    """True when *key* is a real credential rather than unset or a placeholder."""
    return key is not None and key.strip() not in PLACEHOLDER_KEYS


class Credentials(BaseModel):
    """API credentials for the reputation and malware-scan services."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    reputation_key: Optional[str] = Field(None, alias="reputationKey")
    vulnerability_key: Optional[str] = Field(None, alias="vulnerabilityKey")

    @property
    def reputation_configured(self) -> bool:
        return is_configured(self.reputation_key)

    @property
    def vulnerability_configured(self) -> bool:
        return is_configured(self.vulnerability_key)

    def masked(self) -> Dict[str, Any]:
        """Credentials with secrets replaced by a configured flag."""
        return {
            "reputationKey": MASK if self.reputation_configured else None,
            "vulnerabilityKey": MASK if self.vulnerability_configured else None,
        }


class ScanSettings(BaseModel):
    """Tunable limits for a scan."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    check_timeout: float = Field(120.0, gt=0, le=900, alias="checkTimeout")
    max_directories_to_check: int = Field(10, ge=1, le=20, alias="maxDirectoriesToCheck")
    max_requests_per_minute: int = Field(30, ge=1, le=600, alias="maxRequestsPerMinute")
    request_timeout: float = Field(5.0, gt=0, le=60, alias="requestTimeout")
    dns_backend: Literal["doh", "system"] = Field("doh", alias="dnsBackend")
    max_concurrent_probes: int = Field(4, ge=1, le=7, alias="maxConcurrentProbes")
    certificate_poll_interval: float = Field(5.0, ge=0, alias="certificatePollInterval")
    certificate_max_attempts: int = Field(30, ge=1, le=120, alias="certificateMaxAttempts")


class ScanConfig(BaseModel):
    """Complete, immutable scanner configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    credentials: Credentials = Field(default_factory=Credentials)
    settings: ScanSettings = Field(default_factory=ScanSettings)

    def with_preserved_secrets(self, previous: "ScanConfig") -> "ScanConfig":
        """Replace masked credential values with those of *previous*."""
        update = {}
        if self.credentials.reputation_key == MASK:
            update["reputation_key"] = previous.credentials.reputation_key
        if self.credentials.vulnerability_key == MASK:
            update["vulnerability_key"] = previous.credentials.vulnerability_key
        if not update:
            return self
        return self.model_copy(update={"credentials": self.credentials.model_copy(update=update)})

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "credentials": self.credentials.masked(),
            "settings": self.settings.model_dump(by_alias=True),
        }


class Settings(BaseSettings):
    """Environment-backed settings, e.g. ``SITEGUARD_REPUTATION_KEY``."""

    model_config = SettingsConfigDict(
        env_prefix="SITEGUARD_",
        env_file=".env",
        extra="ignore",
    )

    REPUTATION_KEY: Optional[str] = None
    VULNERABILITY_KEY: Optional[str] = None
    CHECK_TIMEOUT: float = 120.0
    MAX_DIRECTORIES_TO_CHECK: int = 10
    MAX_REQUESTS_PER_MINUTE: int = 30
    REQUEST_TIMEOUT: float = 5.0
    DNS_BACKEND: Literal["doh", "system"] = "doh"
    MAX_CONCURRENT_PROBES: int = 4
    LOG_LEVEL: str = "INFO"

    def to_scan_config(self) -> ScanConfig:
        return ScanConfig(
            credentials=Credentials(
                reputation_key=self.REPUTATION_KEY,
                vulnerability_key=self.VULNERABILITY_KEY,
            ),
            settings=ScanSettings(
                check_timeout=self.CHECK_TIMEOUT,
                max_directories_to_check=self.MAX_DIRECTORIES_TO_CHECK,
                max_requests_per_minute=self.MAX_REQUESTS_PER_MINUTE,
                request_timeout=self.REQUEST_TIMEOUT,
                dns_backend=self.DNS_BACKEND,
                max_concurrent_probes=self.MAX_CONCURRENT_PROBES,
            ),
        )


def load_config_file(path: Union[str, Path]) -> ScanConfig:
    """Load a ``{credentials: {...}, settings: {...}}`` JSON document."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    config = ScanConfig.model_validate(data)
    logger.info("Configuration loaded from %s", path)
    return config


def save_config_file(config: ScanConfig, path: Union[str, Path]) -> None:
    """Write *config* in the camelCase JSON shape, secrets included."""
    Path(path).write_text(
        json.dumps(config.model_dump(by_alias=True), indent=2),
        encoding="utf-8",
    )
    logger.info("Configuration saved to %s", path)


class ConfigStore:
    """
    Holds the process-wide current :class:`ScanConfig`.

    ``replace`` swaps the reference; scans already running keep the
    snapshot they took at start.
    """

    def __init__(self, initial: Optional[ScanConfig] = None) -> None:
        self._config = initial or ScanConfig()

    def current(self) -> ScanConfig:
        return self._config

    def replace(self, new_config: ScanConfig) -> ScanConfig:
        previous = self._config
        self._config = new_config
        logger.info("Configuration replaced; takes effect on the next scan")
        return previous


settings = Settings()
