"""应用入口"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from timemachine import __version__
from timemachine.api import router as api_router
from timemachine.config import settings
from timemachine.database import close_db, init_db
from timemachine.logger import get_logger, setup_logging

setup_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"{settings.app_name} 启动完成")
    yield
    await close_db()
    logger.info(f"{settings.app_name} 已关闭")


app = FastAPI(title=settings.app_name, version=__version__, debug=settings.debug, lifespan=lifespan)
app.include_router(api_router, prefix="/api")


@app.get("/health", summary="健康检查")
async def health():
    return {"status": "ok", "version": __version__}
