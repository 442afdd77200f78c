# path: territory-conquest/territory_conquest/main.py

import logging

import structlog
from fastapi import FastAPI

from territory_conquest.api.routes.routes import router as routes_router
from territory_conquest.api.routes.territories import router as territories_router
from territory_conquest.config import settings

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = FastAPI(title=settings.api_title)

app.include_router(routes_router)
app.include_router(territories_router)
