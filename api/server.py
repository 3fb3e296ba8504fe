"""
NextMove API Server - planning endpoints for the web app and integrations.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.planning_router import router as planning_router
from nextmove import __version__, config
from nextmove.observability import CorrelationIdMiddleware, configure_logging
from nextmove.policy import default_policy

logger = logging.getLogger(__name__)

app = FastAPI(
    title="NextMove API",
    description="Action prioritization and daily capacity planning",
    version=__version__,
)

# CORS middleware - NEXTMOVE_CORS_ORIGINS, comma-separated; dev default allows all
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(planning_router, prefix="/api")


@app.on_event("startup")
async def load_policy_on_startup():
    """Load the planning policy once so a broken file fails the boot, not a request."""
    policy = default_policy()
    logger.info(
        "=== NextMove Startup === tiers=%s default_free_minutes=%d",
        {tier.value: count for tier, count in policy.tier_actions.items()},
        policy.default_free_minutes,
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "timestamp": datetime.now().isoformat()}


def main():
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)


if __name__ == "__main__":
    main()
