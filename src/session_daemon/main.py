"""FastAPI application for the stream server's HTTP surface."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from session_daemon import __version__
from session_daemon.context import ServerContext
from session_daemon.routes.health import router as health_router
from session_daemon.routes.sessions import router as sessions_router
from session_daemon.routes.stream import router as stream_router


def create_app(context: ServerContext) -> FastAPI:
    """Create FastAPI application.

    Args:
        context: ServerContext whose StreamServer backs every route. The
            StreamServer owns the event log lifecycle, so the app runs
            without a lifespan.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Session Daemon",
        description="Durable stream of coding agent session state",
        version=__version__,
    )
    app.state.context = context

    # Dashboards are served from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(stream_router)
    app.include_router(sessions_router)
    app.include_router(health_router)

    return app
