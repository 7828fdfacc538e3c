"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from photo_booth.api.admin import router as admin_router
from photo_booth.api.models import LoginRequest, RegisterRequest
from photo_booth.api.sessions import router as sessions_router
from photo_booth.app_logging import configure_logging
from photo_booth.containers import AppContainer
from photo_booth.domain.models import User


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Kiosk started with %s sessions",
            len(app.state.container.session_store.sessions),
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(sessions_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/login")
    async def login(payload: LoginRequest, request: Request) -> dict[str, object]:
        """Sign in at the kiosk."""
        users = request.app.state.container.user_service
        if not users.login(
            payload.email, payload.password, payload.role, payload.force_login
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
            )
        return {"user": _user_payload(users.current_user)}

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest, request: Request) -> dict[str, object]:
        """Register a kiosk user and sign in."""
        users = request.app.state.container.user_service
        if not users.register(
            payload.name, payload.email, payload.password, payload.role
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Email already registered"
            )
        return {"user": _user_payload(users.current_user)}

    @app.post("/auth/logout")
    async def logout(request: Request) -> dict[str, str]:
        request.app.state.container.user_service.logout()
        return {"status": "ok"}

    @app.get("/auth/me")
    async def me(request: Request) -> dict[str, object]:
        users = request.app.state.container.user_service
        return {"user": _user_payload(users.current_user)}

    return app


def _user_payload(user: User | None) -> dict[str, str] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}
