"""
Liveness, readiness and process metrics endpoints.

Readiness runs a ``SELECT 1`` through the same session dependency the
business routes use, so it reports on the database the service talks to.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional
import threading
import time
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import psutil
from .logging_config import get_logger

logger = get_logger(__name__)

# Available system memory, in MB, below which readiness degrades
MEMORY_WARN_MB = 500
MEMORY_FAIL_MB = 100

def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

class HealthStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

def _check(state: HealthStatus, component: str, **details: Any) -> Dict[str, Any]:
    return {"status": state.value, "componentType": component, **details, "time": _now()}

class ServiceHealth:
    """Builds the operational router for one service instance."""

    def __init__(
        self,
        service_name: str,
        version: str,
        get_db: Callable,
        extra_metrics: Optional[Callable[[], Dict[str, Any]]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.get_db = get_db
        self.extra_metrics = extra_metrics
        self.started = time.monotonic()
        self.readiness_probes = 0
        # Sync routes run on threadpool workers
        self._probes_lock = threading.Lock()

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health")
        def health() -> Dict[str, Any]:
            return {
                "status": HealthStatus.PASS.value,
                "service": self.service_name,
                "version": self.version,
                "timestamp": _now(),
            }

        @router.get("/health/live")
        def live() -> Dict[str, str]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def ready(db: Session = Depends(self.get_db)) -> JSONResponse:
            with self._probes_lock:
                self.readiness_probes += 1
            checks = {
                "database:connectivity": self.check_database(db),
                "system:memory": self.check_memory(),
            }
            overall = self.overall(checks)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE if overall is HealthStatus.FAIL else status.HTTP_200_OK,
                content={
                    "status": overall.value,
                    "service": self.service_name,
                    "version": self.version,
                    "checks": checks,
                    "timestamp": _now(),
                },
            )

        @router.get("/metrics")
        def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            with process.oneshot():
                memory = process.memory_info()
                body = {
                    "service": self.service_name,
                    "version": self.version,
                    "uptime_seconds": round(time.monotonic() - self.started, 3),
                    "readiness_probes": self.readiness_probes,
                    "timestamp": _now(),
                    "system": {
                        "memory_rss_bytes": memory.rss,
                        "memory_vms_bytes": memory.vms,
                        "cpu_percent": process.cpu_percent(),
                        "num_threads": process.num_threads(),
                    },
                }
            if self.extra_metrics is not None:
                body.update(self.extra_metrics())
            return body

        return router

    def check_database(self, db: Session) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            db.execute(text("SELECT 1")).scalar()
        except Exception as exc:
            # Reported as a failed check; the probe itself answers 503
            logger.error("Database readiness check failed", exc_info=True)
            return _check(HealthStatus.FAIL, "datastore", output=str(exc))
        elapsed_ms = (time.perf_counter() - started) * 1000
        return _check(HealthStatus.PASS, "datastore", observedValue=round(elapsed_ms, 2), observedUnit="ms")

    def check_memory(self) -> Dict[str, Any]:
        available_mb = psutil.virtual_memory().available / (1024 ** 2)
        if available_mb < MEMORY_FAIL_MB:
            state = HealthStatus.FAIL
        elif available_mb < MEMORY_WARN_MB:
            state = HealthStatus.WARN
        else:
            state = HealthStatus.PASS
        return _check(state, "system", observedValue=round(available_mb, 2), observedUnit="MB")

    @staticmethod
    def overall(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        states = {check["status"] for check in checks.values()}
        for state in (HealthStatus.FAIL, HealthStatus.WARN):
            if state.value in states:
                return state
        return HealthStatus.PASS
