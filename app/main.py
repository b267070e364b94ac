"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import database
from app.routers import goals, reminders, schedule, tasks
from app.services.dispatch import dispatch_sink
from app.services.reminder_service import ReminderService, reminder_loop

logging.basicConfig(
    level=settings.log_level.upper(),
    format="[%(asctime)s] %(levelname)s [%(name)s:%(lineno)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await database.connect()
    if settings.reminder_loop_enabled:
        reminder_loop.start(lambda: ReminderService(database.store, dispatch_sink))
    yield
    # Shutdown
    await reminder_loop.stop()
    await database.disconnect()


app = FastAPI(
    title="Habit Tracker API",
    description="Backend API for goals, recurring schedule tasks and reminders",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(goals.router)
app.include_router(tasks.router)
app.include_router(schedule.router)
app.include_router(reminders.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Habit Tracker API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
