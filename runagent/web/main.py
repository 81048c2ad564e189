from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from runagent.core.config import AppConfig, load_config
from runagent.core.errors import AgentError
from runagent.filesync.service import FileSyncService
from runagent.jobs.hub import NotificationHub
from runagent.jobs.registry import JobRegistry
from runagent.jobs.runner import JobRunner
from runagent.web.api import router as api_router
from runagent.web.limits import BodySizeLimitMiddleware


async def _agent_error_handler(request: Request, exc: AgentError):
    logging.getLogger("api").warning("%s %s failed: %s", request.method, request.url.path, exc)
    return PlainTextResponse(f"Something went wrong: {exc}", status_code=500)


def build_app(cfg: AppConfig | None = None) -> FastAPI:
    cfg = cfg or AppConfig()

    registry = JobRegistry()
    hub = NotificationHub()
    runner = JobRunner(registry, hub, job_workers=cfg.jobs.job_workers)
    file_sync = FileSyncService(executable_mode=cfg.sync.executable_mode)

    @asynccontextmanager
    async def lifespan(_api: FastAPI):
        try:
            yield
        finally:
            await runner.aclose()

    api = FastAPI(title="runagent", version="0.1.0", lifespan=lifespan)
    api.state.config = cfg
    api.state.runner = runner
    api.state.file_sync = file_sync
    api.add_middleware(BodySizeLimitMiddleware, max_body_bytes=cfg.limits.max_body_bytes)
    api.add_exception_handler(AgentError, _agent_error_handler)

    api.include_router(api_router)
    return api


def serve(cfg: AppConfig):
    import uvicorn

    from runagent.core.logging_setup import setup_logging

    setup_logging(cfg.logging.level, cfg.logging.file, cfg.logging.loggers)

    uvicorn.run(
        build_app(cfg),
        host=cfg.bind_host,
        port=cfg.port,
        log_level=cfg.logging.level.lower(),
        log_config=None,
    )


def main():
    serve(load_config())


if __name__ == "__main__":
    main()
