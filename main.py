from contextlib import asynccontextmanager
from fastapi import FastAPI
from settings.config import settings
from db.db_operation import create_indexes, mongo_conn
from core.exceptions import register_exception_handlers
from core.middleware import RequestLoggingMiddleware
from utils.logger import get_logger
from routes import auth, user_routes, restaurant_routes, restaurant_owner_routes, admin_routes, notification_routes

logger = get_logger("main")

@asynccontextmanager
async def lifespan(_: FastAPI):
    await mongo_conn.connect()
    await create_indexes()
    yield
    mongo_conn.close()

app = FastAPI(title=settings.PROJECT_NAME, version="1.0.0", lifespan=lifespan)

@app.get("/")
async def health_check():
    logger.info("Health check is successful")
    return {
        "status": "ok",
        "app": settings.PROJECT_NAME,
        "message": "FastAPI is running"
    }

register_exception_handlers(app)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(user_routes.router, prefix=settings.API_PREFIX)
app.include_router(restaurant_routes.router, prefix=settings.API_PREFIX)
app.include_router(restaurant_owner_routes.router, prefix=settings.API_PREFIX)
app.include_router(admin_routes.router, prefix=settings.API_PREFIX)
app.include_router(notification_routes.admin_router, prefix=settings.API_PREFIX)
app.include_router(notification_routes.restaurant_router, prefix=settings.API_PREFIX)
app.include_router(notification_routes.user_router, prefix=settings.API_PREFIX)
