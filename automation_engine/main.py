from contextlib import asynccontextmanager

from fastapi import FastAPI

from automation_engine.adapters.primary.api.error_handlers import (
    general_exception_handler,
    workflow_exception_handler,
)
from automation_engine.adapters.primary.api.routes.health import router as health_router
from automation_engine.adapters.primary.api.routes.metrics import router as metrics_router
from automation_engine.adapters.primary.api.routes.runs import router as runs_router
from automation_engine.adapters.primary.api.routes.workflow import router as workflow_router
from automation_engine.bootstrap import webhook_caller
from automation_engine.domain.workflow.exceptions import WorkflowException
from automation_engine.shared.config import settings
from automation_engine.shared.database import engine
from automation_engine.shared.logger import configure_logging, get_logger
from automation_engine.shared.redis_client import redis_client

# Configure logging early
configure_logging(process="api")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("application_started", version=settings.APP_VERSION)
    yield

    logger.info("application_shutting_down")
    await webhook_caller.aclose()
    await redis_client.close()
    await engine.dispose()
    logger.info("application_shutdown_complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Runs artist-defined automations when follows, sales, tips and milestones happen.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_exception_handler(WorkflowException, workflow_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(workflow_router)
app.include_router(runs_router)
app.include_router(health_router)
app.include_router(metrics_router)
