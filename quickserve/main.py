"""
FastAPI Application Entry Point

Quick Service Automation - restaurant ordering API.

Endpoints:
    - POST /api/auth/register, POST /api/auth/login: Account sessions
    - GET/PUT /api/users/me: Profile
    - GET /api/menu, /api/menu/categories, /api/menu/{id}: Menu
    - POST/GET /api/orders, GET /api/orders/{id}: Orders
    - POST/GET /api/reservations: Table reservations
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import redis
from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from kombu.exceptions import OperationalError as BrokerError
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from quickserve.core.config import get_settings, setup_logging
from quickserve.core.errors import (
    ApiError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationFailed,
    format_validation_errors,
)
from quickserve.core.security import (
    burn_password_check,
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from quickserve.database import async_session_maker, engine, get_db, init_db
from quickserve.models import MenuCategory, MenuItem, Order, Reservation, User
from quickserve.schemas import (
    RESERVATION_TIME_SLOTS,
    AuthResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    MenuItemResponse,
    OrderCreate,
    OrderResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    ReservationCreate,
    ReservationResponse,
    UserResponse,
)
from quickserve.services.menu_catalog import list_menu_items, seed_menu
from quickserve.services.notifications import get_notification_service
from quickserve.services.orders import create_order as persist_order
from quickserve.tasks import send_order_confirmation, send_reservation_confirmation

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()

    if settings.seed_menu:
        async with async_session_maker() as session:
            await seed_menu(session)

    notification_service = get_notification_service()
    logger.info(f"Notification Service: {notification_service.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Restaurant ordering API: accounts, menu, orders and reservations.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    responses={500: {"model": ErrorResponse}},
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def enqueue(task, payload: dict[str, Any]) -> bool:
    """
    Queue a background task without failing the request.

    The write that triggered the task is already committed, so a broker
    outage only costs the confirmation message.
    """
    try:
        task.delay(payload)
        return True
    except BrokerError as e:
        logger.warning(f"Could not queue {task.name}: {e}")
        return False


async def _find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Verify database, Redis and notification provider."""

    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e}"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {e}"
        logger.error(f"Redis health check failed: {e}")

    notification_status = "healthy" if get_notification_service().health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        notification_service=notification_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/register",
    response_model=AuthResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Create an account and start a session."""
    if await _find_user_by_email(db, payload.email):
        raise ConflictError("User already exists", field="email")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        await db.rollback()
        raise ConflictError("User already exists", field="email")
    await db.refresh(user)

    logger.info(f"User {user.id} registered")
    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@app.post(
    "/api/auth/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Exchange credentials for a session token.

    Unknown email and wrong password produce the same 401 body.
    """
    user = await _find_user_by_email(db, payload.email)

    if user is None:
        burn_password_check(payload.password)
        logger.warning("Login failed: unknown account")
        raise AuthenticationError("Invalid credentials")

    if not verify_password(payload.password, user.password_hash):
        logger.warning(f"Login failed: wrong password for user {user.id}")
        raise AuthenticationError("Invalid credentials")

    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


# =============================================================================
# USER ENDPOINTS
# =============================================================================

@app.get(
    "/api/users/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Users"],
)
async def get_profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    """The authenticated user's profile (never includes the password)."""
    return UserResponse.model_validate(current_user)


@app.put(
    "/api/users/me",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Users"],
)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Update name and email, plus phone/address when provided.

    Omitted or empty phone/address leave the stored values untouched.
    """
    name = (payload.name or "").strip()
    email = (payload.email or "").strip().lower()

    if not name or not email:
        raise ValidationFailed(
            "Name and email are required",
            fields={"name": bool(name), "email": bool(email)},
        )

    try:
        email = _email_adapter.validate_python(email)
    except ValidationError as e:
        raise ValidationFailed(errors={"email": e.errors()[0]["msg"]})

    if email != current_user.email:
        other = await _find_user_by_email(db, email)
        if other is not None and other.id != current_user.id:
            raise ConflictError("Email already in use", field="email")

    current_user.name = name
    current_user.email = email
    phone = (payload.phone or "").strip()
    address = (payload.address or "").strip()
    if phone:
        current_user.phone = phone
    if address:
        current_user.address = address

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use", field="email")
    await db.refresh(current_user)

    logger.info(f"User {current_user.id} updated profile")
    return UserResponse.model_validate(current_user)


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=list[MenuItemResponse],
    tags=["Menu"],
)
async def get_menu(
    category: Optional[MenuCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    popular: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[MenuItemResponse]:
    """Menu items, optionally filtered by category, text search or popularity."""
    items = await list_menu_items(db, category=category, search=search, popular=popular)
    return [MenuItemResponse.model_validate(item) for item in items]


@app.get(
    "/api/menu/categories",
    tags=["Menu"],
)
async def get_menu_categories() -> list[str]:
    """All menu categories, in display order."""
    return [category.value for category in MenuCategory]


@app.get(
    "/api/menu/{item_id}",
    response_model=MenuItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def get_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    """A single menu item."""
    item = await db.get(MenuItem, item_id)
    if item is None:
        raise NotFoundError("Menu item not found")
    return MenuItemResponse.model_validate(item)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Place an order for the authenticated user.

    Subtotal, tax and total are stored exactly as submitted.
    """
    customer = {
        "customerName": current_user.name,
        "customerEmail": current_user.email,
        "customerPhone": current_user.phone,
    }

    order = await persist_order(db, current_user, order_data)
    logger.info(f"Order {order.order_number} created for user {order.user_id} (total {order.total:.2f})")

    enqueue(send_order_confirmation, {
        **customer,
        "orderNumber": order.order_number,
        "total": order.total,
        "itemCount": sum(item["quantity"] for item in order.items),
        "paymentMethod": order.payment_method.value,
    })

    return OrderResponse.model_validate(order)


@app.get(
    "/api/orders",
    response_model=list[OrderResponse],
    responses={401: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def list_orders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    """The caller's orders, newest first."""
    result = await db.execute(
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc())
    )
    return [OrderResponse.model_validate(order) for order in result.scalars().all()]


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    One of the caller's orders.

    Orders owned by someone else are reported as not found.
    """
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.user_id == current_user.id)
    )
    order = result.scalar_one_or_none()

    if order is None:
        raise NotFoundError("Order not found")

    return OrderResponse.model_validate(order)


# =============================================================================
# RESERVATION ENDPOINTS
# =============================================================================

@app.post(
    "/api/reservations",
    response_model=ReservationResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Reservations"],
)
async def create_reservation(
    payload: ReservationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    """Book a table for the authenticated user."""
    reservation = Reservation(
        user_id=current_user.id,
        date=payload.date,
        time=payload.time,
        guests=payload.guests,
        notes=payload.notes,
    )
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)

    logger.info(f"Reservation {reservation.id}: {reservation.date} {reservation.time} x{reservation.guests}")

    enqueue(send_reservation_confirmation, {
        "id": reservation.id,
        "customerName": current_user.name,
        "customerEmail": current_user.email,
        "customerPhone": current_user.phone,
        "date": reservation.date.isoformat(),
        "time": reservation.time,
        "guests": reservation.guests,
    })

    return ReservationResponse.model_validate(reservation)


@app.get(
    "/api/reservations",
    response_model=list[ReservationResponse],
    responses={401: {"model": ErrorResponse}},
    tags=["Reservations"],
)
async def list_reservations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ReservationResponse]:
    """The caller's reservations, soonest first."""
    result = await db.execute(
        select(Reservation).where(Reservation.user_id == current_user.id)
    )
    reservations = sorted(
        result.scalars().all(),
        key=lambda r: (r.date, RESERVATION_TIME_SLOTS.index(r.time)),
    )
    return [ReservationResponse.model_validate(r) for r in reservations]


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render deliberate API errors."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation problems as 400 with per-field messages."""
    errors = format_validation_errors(exc.errors())
    logger.debug(f"Validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content=ValidationFailed(errors=errors).to_dict(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework errors (unknown route, wrong method) in the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    content = {"success": False, "message": "Server error"}
    if settings.debug:
        content["error"] = str(exc)

    return JSONResponse(status_code=500, content=content)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quickserve.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
