"""
Backend Codegen Studio

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.ai.model_client import resolve_provider_settings
from src.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from src.api.v1 import router as api_v1_router
from src.config import get_settings
from src.database import async_session_maker, close_db, init_db
from src.kernel.errors import InvalidTransitionError, ProjectNotFoundError, StaleStateError
from src.logging_config import configure_logging, get_logger
from src.orchestration.orchestrator import Orchestrator
from src.schemas.common import HealthResponse, ServiceInfo

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Startup: logging, schema, orchestrator, resume of interrupted steps.
    Shutdown: drain or cancel background steps, then close the database.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    orchestrator = Orchestrator(async_session_maker, settings=settings)
    app.state.orchestrator = orchestrator
    if settings.resume_interrupted_workflows:
        resumed = await orchestrator.resume_interrupted()
        if resumed:
            logger.info("Resumed %d interrupted workflow step(s)", resumed)

    yield

    logger.info("Shutting down...")
    await orchestrator.shutdown()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Backend Codegen Studio

    Turns a plain-language project description into backend source code.

    ## Workflow

    1. **Interview**: the model asks clarifying questions until the description is complete
    2. **Analysis**: the description becomes a list of requirements for you to approve
    3. **Generation**: approved requirements become source files for you to approve

    Every model step runs in the background; poll the project to follow it.
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first: CORS is added last so it wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    """JSON error with the request id echoed in body and header."""
    req_id = getattr(request.state, "request_id", None)
    headers = {}
    if req_id:
        headers[REQUEST_ID_HEADER] = req_id
        content["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(ProjectNotFoundError)
async def not_found_handler(request: Request, exc: ProjectNotFoundError):
    return _error_response(
        request,
        status.HTTP_404_NOT_FOUND,
        {"detail": str(exc), "code": "project_not_found"},
    )


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    """Guard violations and lost races both mean: the project is not where you think."""
    logger.info("Rejected %s for project %s: status is %s", exc.event, exc.project_id, exc.current_status)
    return _error_response(
        request,
        status.HTTP_409_CONFLICT,
        {
            "detail": str(exc),
            "code": "stale_state" if isinstance(exc, StaleStateError) else "invalid_transition",
            "current_status": exc.current_status,
            "expected_status": exc.expected,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, {"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__}
    else:
        content = {"detail": "Internal server error"}
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return HealthResponse(
        status="ok",
        version=settings.version,
        environment=settings.environment,
        default_provider=settings.default_provider,
        ai_configured=resolve_provider_settings(settings=settings).is_configured,
        running_steps=len(orchestrator.runner.outstanding()) if orchestrator else 0,
    )


@app.get("/", response_model=ServiceInfo, tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return ServiceInfo(
        name=settings.project_name,
        version=settings.version,
        docs="/docs" if settings.debug else "disabled",
        endpoints=[
            f"{settings.api_v1_prefix}/projects",
            f"{settings.api_v1_prefix}/projects/{{id}}",
            f"{settings.api_v1_prefix}/projects/{{id}}/events",
        ],
    )


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
