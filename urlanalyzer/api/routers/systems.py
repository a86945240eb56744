from fastapi import APIRouter

REDACTED_KEYS = ("DATABASE_URL",)


def create_systems_router(container_env: dict, worker=None):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        body = {"status": "ok"}
        if worker is not None:
            body["worker"] = {"running": worker.running, "in_flight": worker.in_flight}
        return body

    @router.get("/config")
    def get_config():
        """Return current environment configuration values (credentials redacted)."""
        env = {}
        for key, value in container_env.items():
            if value is None:
                env[key] = None
            elif key in REDACTED_KEYS:
                env[key] = "***"
            else:
                env[key] = str(value)
        return {"environment": env}

    return router
