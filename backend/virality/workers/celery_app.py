"""Celery应用配置：评分任务走独立的 scoring 队列"""
import socket

from celery import Celery

from virality.config import get_settings

settings = get_settings()

SCORING_QUEUE = "scoring"


def _keepalive_options() -> dict:
    # 不同平台暴露的 TCP 常量不同
    names = {"TCP_KEEPIDLE": 600, "TCP_KEEPINTVL": 30, "TCP_KEEPCNT": 3}
    return {getattr(socket, name): value for name, value in names.items() if hasattr(socket, name)}


# 一次评分最多两次 LLM 调用（首轮 + 修复），再留出写库时间
_soft_limit = settings.llm_timeout * 2 + 60

celery_app = Celery(
    "virality",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["virality.workers.analyze_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={"virality.score_analysis": {"queue": SCORING_QUEUE}},
    task_default_queue=SCORING_QUEUE,
    task_track_started=True,
    task_soft_time_limit=_soft_limit,
    task_time_limit=_soft_limit + 60,
    # 评分任务是幂等的（非 pending 直接跳过），可以晚确认
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    broker_connection_retry_on_startup=True,
    broker_transport_options={
        "socket_keepalive": True,
        "socket_keepalive_options": _keepalive_options(),
        "visibility_timeout": 3600,
    },
)
