import sys
import os
import logging
from pathlib import Path
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config.database import engine, Base
from config.logging_config import configure_logging
from config.settings import settings
from middlewares.request_logging_middleware import RequestLoggingMiddleware
from utils.deps import get_pass_repository
from utils.exceptions import StoreUnavailableError

# register models on Base before create_all
import api.passes.passes_model  # noqa: F401
import api.scans.scans_model  # noqa: F401
import api.attendance.attendance_records_model  # noqa: F401

configure_logging()
logger = logging.getLogger("passgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("%s started [Mode: %s]", settings.APP_NAME, settings.ENVIRONMENT)
    yield

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
# CORS: use our parsed list
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)
app.add_middleware(RequestLoggingMiddleware)

#load all routes
def load_routes(directory: Path):
    import importlib.util
    routers = []
    for item in sorted(directory.rglob("*_routes.py")):
        spec = importlib.util.spec_from_file_location(item.stem, str(item))
        module = importlib.util.module_from_spec(spec)
        sys.modules[item.stem] = module
        spec.loader.exec_module(module)
        if hasattr(module, "router"):
            routers.append(module.router)
    return routers

for router in load_routes(Path(__file__).parent / "api"):
    app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check(repository=Depends(get_pass_repository)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await repository.ping()
    except StoreUnavailableError:
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "timestamp": timestamp, "store": "unavailable"},
        )
    return {"status": "ok", "timestamp": timestamp, "store": "ok"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", settings.PORT or 8000))
    # listen on every interface so scanners on the same network can reach it
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=settings.is_development)
