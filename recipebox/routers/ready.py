from fastapi import APIRouter
from sqlalchemy import text

from recipebox.db import SessionLocal
from recipebox.infra.redis_client import get_redis

router = APIRouter()


@router.get("/ready")
async def ready():
    redis_ok = False
    try:
        r = await get_redis()
        await r.ping()
        redis_ok = True
    except Exception:
        pass

    db_ok = False
    try:
        with SessionLocal()() as db:
            db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        pass
    return {"ok": True, "redis_ok": redis_ok, "db_ok": db_ok}
