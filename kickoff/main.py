import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kickoff import __version__
from kickoff.database import init_db
from kickoff.routes import categories, runtime, schedule, standings, teams, tournaments

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Kickoff Tournament Planner API", version=__version__)

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

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(categories.router, prefix="/api", tags=["categories"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
# Results entry (scores + status; no schedule mutation)
app.include_router(runtime.router, prefix="/api", tags=["runtime"])
app.include_router(standings.router, prefix="/api", tags=["standings"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Kickoff API %s started (%d routes)", __version__, len(app.routes))


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Kickoff Tournament Planner API", "version": __version__, "status": "healthy"}
