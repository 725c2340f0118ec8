from fastapi import APIRouter

SECRET_KEYS = frozenset({"DOCUMENT_AI_API_KEY", "GITHUB_TOKEN"})


def create_systems_router(container_env: dict):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        return {"status": "ok"}

    @router.get("/config")
    def get_config():
        """Return current environment configuration values (credentials masked)."""
        environment = {}
        for key, value in container_env.items():
            if value is None:
                environment[key] = None
            elif key in SECRET_KEYS:
                environment[key] = "***"
            else:
                environment[key] = str(value)
        return {"environment": environment}

    return router
