"""API routes for the health panel.

Endpoints:
  GET  /api/health                 — check every resource, overall status
  GET  /api/health/resources       — declared resources (no checks run)
  GET  /api/health/{name}          — check a single resource
  POST /api/health/reload          — re-read resource definitions
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from healthwatch.health.models import ResourceNotFound
from healthwatch.health.service import HealthService, summarize

logger = logging.getLogger(__name__)

health_router = APIRouter()


def _service(request: Request) -> HealthService:
    return request.app.state.health_service


@health_router.get("/health")
def health_panel(request: Request) -> dict[str, Any]:
    """Run (or serve cached) checks for every resource."""
    health = _service(request).check_all()
    data = health.to_dict()
    data["summary"] = summarize(health)
    return data


@health_router.get("/health/resources")
def list_resources(request: Request) -> dict[str, Any]:
    definitions = _service(request).store.definitions
    return {
        "resources": [
            {
                "name": d.name,
                "label": d.display_name,
                "abbreviation": d.abbreviation,
                "check_type": d.check_type,
                "enabled": d.enabled,
                "notify_on": sorted(s.value for s in d.notification_threshold),
            }
            for d in definitions
        ],
    }


@health_router.post("/health/reload")
def reload_resources(request: Request) -> dict[str, Any]:
    definitions = _service(request).reload()
    return {"loaded": len(definitions)}


@health_router.get("/health/{name}")
def check_resource(name: str, request: Request) -> dict[str, Any]:
    try:
        result = _service(request).check_one(name)
    except ResourceNotFound:
        raise HTTPException(status_code=404, detail=f"Resource not found: {name}")
    return result.to_dict()
