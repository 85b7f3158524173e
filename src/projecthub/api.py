"""FastAPI application exposing user, template and project endpoints."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .auth import (
    get_credential_store,
    get_current_user_id,
    get_resource_repository,
    get_token_service,
)
from .config import Settings, settings as default_settings
from .database import create_db_engine, create_session_factory, init_db, seed_templates
from .errors import AppError, NotFoundError, ValidationError
from .schemas import (
    CurrentUserResponse,
    LoginResponse,
    LoginUser,
    ProjectCreate,
    ProjectCreatedResponse,
    ProjectItem,
    ProjectListResponse,
    PublicUser,
    RegisterResponse,
    TemplateItem,
    TemplateListResponse,
    UserCreate,
    UserLogin,
)
from .security import PasswordHasher, TokenService
from .services import CredentialStore, ResourceRepository


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    if app.state.settings.seed_templates:
        db = app.state.session_factory()
        try:
            inserted = seed_templates(db)
        finally:
            db.close()
        if inserted:
            logger.info("seeded %s templates", inserted)
    yield
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own engine, token service and password hasher."""
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level.upper())
    if settings.jwt_secret_is_generated():
        logger.warning("JWT_SECRET is not set, using a random per-process secret")

    app = FastAPI(title=settings.api_title, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_db_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.token_service = TokenService(settings)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    limiter = Limiter(
        key_func=get_remote_address, enabled=settings.rate_limit_enabled
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    _register_error_handlers(app)
    app.middleware("http")(log_requests)
    app.include_router(build_auth_router(limiter, settings.auth_rate_limit))
    app.include_router(router)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info(
            "invalid request %s %s fields=%s",
            request.method,
            request.url.path,
            [err.get("loc") for err in exc.errors()],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationError().to_dict(),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Details were already logged by log_requests.
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )


async def log_requests(request: Request, call_next):
    """Log incoming requests and their outcomes while updating metrics."""
    logger.info("request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response
    except Exception:
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status="500",
        ).inc()
        logger.exception(
            "error handling %s %s", request.method, request.url.path
        )
        raise


def build_auth_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Registration and login routes, rate limited by the app's own limiter."""

    auth_router = APIRouter(prefix="/api")

    @auth_router.post(
        "/users/register",
        response_model=RegisterResponse,
        status_code=status.HTTP_201_CREATED,
    )
    @limiter.limit(rate_limit)
    def register(
        request: Request,
        payload: UserCreate,
        store: CredentialStore = Depends(get_credential_store),
    ):
        user = store.register(payload.username, payload.email, payload.password)
        return RegisterResponse(
            user=PublicUser(
                user_id=user["id"], username=user["username"], email=user["email"]
            )
        )

    @auth_router.post("/users/login", response_model=LoginResponse)
    @limiter.limit(rate_limit)
    def login(
        request: Request,
        payload: UserLogin,
        store: CredentialStore = Depends(get_credential_store),
        tokens: TokenService = Depends(get_token_service),
    ):
        user = store.authenticate(payload.email, payload.password)
        return LoginResponse(
            token=tokens.issue(user.id),
            user=LoginUser(user_id=user.id, username=user.username),
        )

    return auth_router


@router.get("/users/me", response_model=CurrentUserResponse)
def current_user(
    user_id: int = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
):
    """Return the public profile of the token's user."""

    user = store.get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return CurrentUserResponse(
        user=PublicUser(user_id=user.id, username=user.username, email=user.email)
    )


@router.get("/templates", response_model=TemplateListResponse)
def list_templates(
    featured: bool = False,
    repo: ResourceRepository = Depends(get_resource_repository),
):
    """Return templates whose featured flag equals ``featured``."""

    return TemplateListResponse(
        templates=[TemplateItem.model_validate(t) for t in repo.list_templates(featured)]
    )


@router.post(
    "/projects",
    response_model=ProjectCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_project(
    payload: ProjectCreate,
    user_id: int = Depends(get_current_user_id),
    repo: ResourceRepository = Depends(get_resource_repository),
):
    """Create a project owned by the authenticated user."""

    project = repo.create_project(payload.template_id, user_id, payload.title)
    return ProjectCreatedResponse(
        project_id=project.id, title=project.title, status=project.status
    )


@router.get("/projects", response_model=ProjectListResponse)
def list_projects(
    user_id: int = Depends(get_current_user_id),
    repo: ResourceRepository = Depends(get_resource_repository),
):
    """Return the authenticated user's projects in creation order."""

    return ProjectListResponse(
        projects=[
            ProjectItem(
                project_id=p.id,
                template_id=p.template_id,
                title=p.title,
                status=p.status,
            )
            for p in repo.list_projects(user_id)
        ]
    )


app = create_app()
