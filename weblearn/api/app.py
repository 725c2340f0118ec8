from fastapi import FastAPI

from weblearn.api.routers import create_systems_router, create_web_router
from weblearn.container import ENV, Container


def create_app(container: Container = None) -> FastAPI:
    """Build the FastAPI app, wiring routers from the DI container."""
    container = container or Container()
    app = FastAPI(title="WebLearn", version="0.1")
    app.state.container = container

    app.include_router(create_web_router(container.acquisition_service()))
    app.include_router(create_systems_router(ENV))
    return app
