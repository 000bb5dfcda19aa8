from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from database import Base, SessionLocal, engine, get_settings
from core.broadcaster import Broadcaster
from core.repository import InMemoryRepository, SqlRepository
from core.seed import seed_demo_data
from api import (
    analytics,
    auth,
    candidate_feedback,
    candidates,
    feedback,
    google_sheets,
    panels,
    role_permissions,
    rooms,
    users,
    websocket,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


def build_repository(settings):
    if settings.storage_backend == "sql":
        Base.metadata.create_all(bind=engine)
        return SqlRepository(SessionLocal)
    return InMemoryRepository()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: fresh store (plus demo data) and the broadcaster fan-out task
    settings = get_settings()
    app.state.repository = build_repository(settings)
    if settings.seed_demo_data:
        seed_demo_data(app.state.repository)

    app.state.broadcaster = Broadcaster()
    await app.state.broadcaster.start()
    logger.info(f"Walk-in drive API ready (storage={settings.storage_backend})")

    yield

    # Shutdown
    await app.state.broadcaster.stop()


app = FastAPI(
    title="Walk-in Drive API",
    description="Backend API for walk-in interview drive management: queue, panels, rooms and feedback",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


# Include routers
app.include_router(auth.router)
app.include_router(candidates.router)
app.include_router(panels.router)
app.include_router(rooms.router)
app.include_router(feedback.router)
app.include_router(candidate_feedback.router)
app.include_router(users.router)
app.include_router(role_permissions.router)
app.include_router(google_sheets.router)
app.include_router(analytics.router)
app.include_router(websocket.router)


@app.get("/")
def root():
    return {"message": "Walk-in Drive API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
