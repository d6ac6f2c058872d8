# app/main.py

import logging
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Конфигурация и ядро
from app.core.config import settings as config
from app.core.exceptions import LoyaltyError, PersistenceFailure
from app.core.limiter import limiter
from app.core.logging_config import setup_logging
from app.core.redis import redis_client, close_redis_client

# Роутеры FastAPI
from app.routers import points, rewards, catalog, internal
from app.routers import admin as admin_router

# Фоновые задачи
from app.services.points_expiration import expire_points_task

# --- Инициализация ---
logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()

# --- Обработчики ошибок ---
async def loyalty_error_handler(request: Request, exc: LoyaltyError):
    """
    Ожидаемые ошибки бизнес-логики: клиент получает код и понятное сообщение.
    PersistenceFailure непрозрачна - детали уже записаны в лог сервисом.
    """
    if isinstance(exc, PersistenceFailure):
        logger.error(f"Persistence failure for request: {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    Traceback только в логе, клиенту - общий текст.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "Internal Server Error."},
    )

# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")

    # Блокировка через Redis: планировщик запускается только в одном воркере
    is_main_worker = False
    if config.RUN_SCHEDULER:
        is_main_worker = await redis_client.set("rewards_scheduler_lock", "1", ex=60, nx=True)

    if is_main_worker and not scheduler.running:
        scheduler.add_job(
            expire_points_task, 'cron',
            hour=config.EXPIRE_POINTS_CRON_HOUR, minute=0, timezone=config.SCHEDULER_TIMEZONE,
            id="expire_points", replace_existing=True,
        )
        scheduler.start()
        logger.info("Scheduler started with background jobs.")
    else:
        logger.info("Scheduler is disabled or owned by another worker. Skipping.")

    yield

    if is_main_worker:
        logger.info("Main worker shutting down...")
        if scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler shut down.")
        await redis_client.delete("rewards_scheduler_lock")
    await close_redis_client()

# --- Создание FastAPI приложения ---
app = FastAPI(
    title="Vendor Rewards Service",
    description="Points ledger, rewards redemption and gold-rate pricing for jewellery vendors",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:8080", config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Лимиты запросов ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Регистрация обработчиков исключений ---
app.add_exception_handler(LoyaltyError, loyalty_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(points.router, tags=["Points"])
api_router.include_router(rewards.router, tags=["Rewards"])
api_router.include_router(catalog.router, tags=["Catalog"])

# Админские эндпоинты
api_router.include_router(admin_router.router, prefix="/admin")

app.include_router(api_router)

# Вызовы от внешнего планировщика (остаются в корне)
app.include_router(internal.router, prefix="/internal/jobs", tags=["Internal Jobs"])


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}
