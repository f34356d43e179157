"""
Scan API Endpoints

  - POST /api/scans   → run one scan and return its report
  - GET  /api/config  → current configuration, secrets masked
  - PUT  /api/config  → replace configuration for subsequent scans
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from siteguard.core.config import ConfigStore, ScanConfig, settings
from siteguard.errors import ScanTimeoutError, TargetValidationError
from siteguard.scanner.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Scans"])

config_store = ConfigStore(settings.to_scan_config())


class ScanRequest(BaseModel):
    """Body of ``POST /api/scans``."""

    url: str = Field(..., description="Target URL (http or https)")
    headers: Optional[Dict[str, str]] = Field(
        None,
        description="Root-document response headers; fetched with HEAD when omitted",
    )


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------

def get_config_store() -> ConfigStore:
    """FastAPI dependency – the process-wide configuration store."""
    return config_store


def get_orchestrator(store: ConfigStore = Depends(get_config_store)) -> ScanOrchestrator:
    """FastAPI dependency – an orchestrator reading from *store*."""
    return ScanOrchestrator(store)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scans")
async def create_scan(
    request: ScanRequest,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    """Scan one target and return the full report."""
    try:
        report = await orchestrator.scan_with_timeout(request.url, headers=request.headers)
    except TargetValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )
    except ScanTimeoutError as e:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=str(e),
        )

    logger.info(f"Scan of {report.target.url} finished with score {report.overall_score}")
    return report.model_dump(mode="json")


@router.get("/config")
async def get_config(store: ConfigStore = Depends(get_config_store)):
    """Current configuration with credentials masked."""
    return store.current().to_public_dict()


@router.put("/config")
async def replace_config(
    new_config: ScanConfig,
    store: ConfigStore = Depends(get_config_store),
):
    """
    Replace the configuration; running scans keep their snapshot.

    Credentials sent back in their masked form keep their current value.
    """
    store.replace(new_config.with_preserved_secrets(store.current()))
    return store.current().to_public_dict()
