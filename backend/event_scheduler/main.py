import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from event_scheduler.database import init_db
from event_scheduler.routes import runtime, schedule

load_dotenv()

_debug = os.getenv("SCHEDULER_DEBUG", "false").lower() in ("true", "1", "yes")
logging.basicConfig(
    level=logging.DEBUG if _debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Event Scheduling Engine API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Scheduling (generate + allocate + persist)
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
# Runtime (results, finalization, standings)
app.include_router(runtime.router, prefix="/api", tags=["runtime"])


@app.on_event("startup")
def on_startup():
    init_db()  # Use centralized init_db() which imports models and creates tables
    logger.info(f"Event Scheduling Engine started (debug={_debug}, routes={len(app.routes)})")


@app.get("/api/health")
def health_check():
    return {"app_name": "Event Scheduling Engine API", "status": "healthy"}
