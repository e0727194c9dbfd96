"""
FastAPI server for the engine API. Run with run_api_server(app).
Central endpoints: GET /api/health, GET /api/settings. Per-feature routes are mounted
from prayer_engine.<package>.api (get_router(engine_app)) under /api/components/<package>/.
Docs when enabled: http://<host>:<port>/docs
"""
import importlib
import logging
import pkgutil
import threading
from typing import Any, Dict

from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Keys to exclude from config in API (secrets)
_CONFIG_SECRET_KEYS = frozenset(
    {"api_key", "password", "token", "secret", "credentials", "url"}
)


def _safe_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return config with secret keys omitted."""
    if not config:
        return {}
    return {k: v for k, v in config.items() if k.lower() not in _CONFIG_SECRET_KEYS}


def create_app(engine_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given EngineApp instance."""
    app = FastAPI(title="Prayer Engine API", description="Prayer times, locations and schedules")

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.get("/api/settings")
    def settings() -> Dict[str, Any]:
        """Active calculation settings and safe config sections."""
        attribute = engine_app.attribute
        return {
            "calculation": {
                "method": attribute.method.value,
                "asr_method": attribute.asr_method.name.lower(),
                "high_latitude": attribute.high_latitude.value,
                "offsets": list(attribute.offsets),
                "timezone": engine_app.timezone,
                "iterations": engine_app.calculator.num_iterations,
            },
            "schedule": _safe_config(
                {k: v for k, v in engine_app.config.get_section("schedule").items() if k != "targets"}
            ),
        }

    # Mount per-feature API routers from prayer_engine.<name>.api (get_router(engine_app))
    package = importlib.import_module("prayer_engine")
    for _mod, name, is_pkg in pkgutil.iter_modules(package.__path__):
        if not is_pkg or name in ("api", "core"):
            continue
        try:
            api_module = importlib.import_module(f"prayer_engine.{name}.api")
        except ModuleNotFoundError:
            continue
        if not hasattr(api_module, "get_router") or not callable(api_module.get_router):
            continue
        router = api_module.get_router(engine_app)
        if router is not None:
            app.include_router(router, prefix=f"/api/components/{name}")
            logger.debug(f"Mounted API router for {name}")

    return app


def run_api_server(engine_app: Any, background: bool = False) -> None:
    """
    Serve the API with uvicorn.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    background=True runs it in a daemon thread.
    """
    import uvicorn

    api_config = engine_app.config.get_section("api")
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(engine_app)

    def run_uvicorn():
        logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
        uvicorn.run(fastapi_app, host=host, port=port)

    if not background:
        run_uvicorn()
        return

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")
