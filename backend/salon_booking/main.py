import logging

from fastapi import Depends, FastAPI
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import get_redis
from .routers import availability, bookings, locations, verification

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = FastAPI(title="Salon Booking API")

app.include_router(locations.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(verification.router)


@app.get("/health")
def health(
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    try:
        db_ok = db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError:
        db_ok = False

    redis_ok = None
    if redis is not None:
        try:
            redis_ok = bool(redis.ping())
        except RedisError:
            redis_ok = False

    return {"database": db_ok, "redis": redis_ok}
