"""Core configuration."""

from .config import ConfigStore, Credentials, ScanConfig, ScanSettings, Settings, settings

__all__ = ["ConfigStore", "Credentials", "ScanConfig", "ScanSettings", "Settings", "settings"]
