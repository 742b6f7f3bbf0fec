"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from zest_tasks.config import get_settings
from zest_tasks.database import create_tables, engine
from zest_tasks.api import auth, chat, dashboard, statistics, tasks, workflows
from zest_tasks.services.errors import ConflictError, NotFoundError
from zest_tasks.utils.logger import configure_logging, get_logger

settings = get_settings()
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

class AppCORSMiddleware(CORSMiddleware):
    """App-wide CORS for the configured origins.

    Paths under ``open_paths`` bypass it: the chat relay sets its own
    permissive headers and answers preflights from any origin.
    """

    def __init__(self, app, open_paths=(), **kwargs):
        super().__init__(app, **kwargs)
        self.open_paths = tuple(open_paths)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"].startswith(self.open_paths):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


# CORS
app.add_middleware(
    AppCORSMiddleware,
    open_paths=("/api/chat",),
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(workflows.router, prefix="/api/workflows", tags=["Workflows"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(statistics.router, prefix="/api/statistics", tags=["Statistics"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "zest_tasks.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
