"""
SiteGuard API

REST endpoints for running scans and managing scanner configuration.
"""

from .scans import config_store, get_config_store, get_orchestrator, router

__all__ = ['config_store', 'get_config_store', 'get_orchestrator', 'router']
