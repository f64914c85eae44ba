import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError

from catering.core.config import settings
from catering.core.logging import configure_logging
from catering.api.v1.api import api_router

configure_logging()
logger = logging.getLogger("catering")

app = FastAPI(title=settings.APP_NAME)

# CORS: CORS_ORIGINS from env in production; the customer site and back office dev servers otherwise
_default_origins = [
    "http://127.0.0.1:3000", "http://localhost:3000",
    "http://127.0.0.1:5173", "http://localhost:5173",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(StaleDataError)
async def stale_booking_handler(request: Request, exc: StaleDataError):
    # a booking row changed between read and commit in a route that does not check versions itself
    logger.warning("stale write on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=409, content={"detail": "record was modified by someone else; reload and retry"})


@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}


logger.info("%s ready (env=%s)", settings.APP_NAME, settings.ENV)
