from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alerts import router as alerts_router
from auth import router as auth_router
from core import db, logging_config, settings
from dashboard import router as dashboard_router
from devices import router as devices_router
from telemetry import router as telemetry_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging_config.configure_logging()
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="wind-telemetry", lifespan=lifespan)

# Allow the dashboard frontend to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(devices_router.router, tags=["devices"])
app.include_router(telemetry_router.router, tags=["telemetry"])
app.include_router(alerts_router.router, tags=["alerts"])
app.include_router(dashboard_router.router, tags=["dashboard"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "wind-telemetry api"}
