# writes: method / path / status; user; IP / UA; processing time
# does NOT block the request; does NOT touch the database

import json
import logging
import time

from fastapi import Request

from .auth import USER_ID_HEADER
from .rate_limit import client_ip

logger = logging.getLogger("roombook.audit")


async def audit_middleware(request: Request, call_next):
    start_ts = time.time()

    response = await call_next(request)

    duration_ms = int((time.time() - start_ts) * 1000)

    record = {
        "ts": int(start_ts),
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "user": request.headers.get(USER_ID_HEADER),
        "ip": client_ip(request),
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": duration_ms
    }

    logger.info(json.dumps(record, ensure_ascii=False))

    return response
