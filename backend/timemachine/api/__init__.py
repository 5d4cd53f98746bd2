"""时光机API路由 - 章节保存、版本历史、版本对比与恢复"""
from fastapi import APIRouter
from . import chapters, versions

# 创建主路由
router = APIRouter()

# 注册子路由
router.include_router(chapters.router)
router.include_router(versions.router)

# 导出给主应用使用
__all__ = ["router"]
