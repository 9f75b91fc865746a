"""FastAPI应用入口"""
import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from virality.config import Settings, get_settings
from virality.api import analysis, auth, credits, pages, platforms
from virality.api.middleware import SessionGateMiddleware
from virality.errors import AuthenticationError, ViralityError
from virality.services.auth_client import AuthClient
from virality.services.session_gate import LOGIN_PATH, SessionGate

logger = logging.getLogger(__name__)


# 配置日志
def setup_logging(settings: Settings):
    log_dir = settings.log_dir
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # 1. 控制台处理器
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # 2. 文件轮转处理器 (10MB * 5 backups)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=10*1024*1024,
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        handlers=[console_handler, file_handler]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理：启动时提示认证配置状态"""
    logger.info("Starting application...")
    if not app.state.settings.auth_configured:
        logger.warning(
            "STORE_URL / STORE_API_KEY missing; protected pages will redirect to /login"
        )
    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


def _error_response(request: Request, exc: ViralityError):
    # 页面请求未登录时跳转，API 请求返回 {"error": ...}
    if isinstance(exc, AuthenticationError) and not request.url.path.startswith("/api"):
        return RedirectResponse(url=LOGIN_PATH, status_code=307)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _validation_error_response(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


def create_app(settings: Optional[Settings] = None, auth_client: Optional[AuthClient] = None) -> FastAPI:
    """构建应用；配置在进程启动时构造一次并显式传给网关与存取层"""
    settings = settings or get_settings()
    auth_client = auth_client or AuthClient(settings)

    app = FastAPI(
        title="Virality Analyzer",
        description="AI内容传播力分析API",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.auth_client = auth_client

    app.add_middleware(SessionGateMiddleware, gate=SessionGate(settings, auth_client))
    # 会话依赖 cookie，必须指定具体来源
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.site_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ViralityError, _error_response)
    app.add_exception_handler(RequestValidationError, _validation_error_response)

    @app.get("/health")
    async def health_check():
        """健康检查接口"""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "auth_configured": settings.auth_configured,
        }

    # 注册路由
    app.include_router(pages.router, tags=["页面"])
    app.include_router(auth.router, prefix="/auth", tags=["登录"])
    app.include_router(analysis.router, prefix="/api/analysis", tags=["分析管理"])
    app.include_router(credits.router, prefix="/api/credits", tags=["额度"])
    app.include_router(platforms.router, prefix="/api/platforms", tags=["平台管理"])
    return app


setup_logging(get_settings())
app = create_app()
