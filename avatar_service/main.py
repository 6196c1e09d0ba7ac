import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.logging import LoggingIntegration

from avatar_service.api.routes import include_routers
from avatar_service.config import config
from avatar_service.config.logger import setup_logging
from avatar_service.core.dependencies import service_lifespan
from avatar_service.middlewares.restrict_docs import RestrictDocsAccessMiddleware
from avatar_service.utils.image_processing import cleanup_executor
from avatar_service.version import APP_VERSION


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with service_lifespan():
        logger.info(f"Старт {config.app.service_name} {APP_VERSION}, environment={config.app.environment}")
        yield

    # Очищаем executor для обработки изображений
    cleanup_executor()
    logger.info("Завершение работы")


# Отключаем логирование from Sentry
sentry_logging = LoggingIntegration(
    level=None,  # Не перехватывать логи
    event_level=logging.ERROR  # Отправлять как события только ERROR и выше
)

if config.app.is_production and config.sentry.dsn:
    sentry_sdk.init(
        dsn=config.sentry.dsn,
        integrations=[sentry_logging],
        environment=config.app.environment,
        release=APP_VERSION,
        traces_sample_rate=config.sentry.traces_sample_rate,
        profiles_sample_rate=0,
        max_breadcrumbs=5,
        attach_stacktrace=False,
        ignore_errors=[KeyboardInterrupt, SystemExit]
    )

app = FastAPI(lifespan=lifespan,
              title="Avatar API",
              docs_url="/docs" if config.app.enable_docs else None,
              redoc_url="/redoc" if config.app.enable_docs else None,
              openapi_url="/openapi.json" if config.app.enable_docs else None,
              version=APP_VERSION
              )

# Настраиваем логирование
logger = setup_logging(
    app,
    syslog_host=config.logging.syslog_host,
    syslog_port=config.logging.syslog_port,
    graylog_host=config.logging.graylog_host,
    graylog_port=config.logging.graylog_port,
    log_level=config.app.log_level,
    syslog_enabled=config.logging.syslog_enabled,
    graylog_enabled=config.logging.graylog_enabled,
    service_name=config.app.service_name
)

if config.app.restrict_docs:
    app.add_middleware(RestrictDocsAccessMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Подключаем маршруты
include_routers(app)

instrumentator = Instrumentator(excluded_handlers=["/metrics"])

instrumentator.instrument(app).expose(app)


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(app, host=config.app.host, port=config.app.port, log_level=config.app.log_level.lower())
