# main.py
import uuid
from time import time

from fastapi import FastAPI, Request

from config import settings
from app.scripts.logging_config import setup_logging, get_logger, set_request_id

# 1) logging first
setup_logging(json_fmt=settings.LOG_JSON)
logger = get_logger(__name__)

# 2) Firebase (only for the firestore backend)
if (settings.STORE_BACKEND or "firestore").lower() == "firestore":
    from app.services.firebase_init import init_firebase
    init_firebase()
else:
    logger.info("Store backend=%s, Firebase disabled.", settings.STORE_BACKEND)

# 3) FastAPI app
app = FastAPI(title="Campus ID Lost & Found API")

# 4) request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    set_request_id(rid)

    start = time()
    path = request.url.path
    method = request.method
    client_ip = getattr(request.client, 'host', '-') if request.client else '-'
    logger.info("REQ start %s %s ip=%s", method, path, client_ip)

    status = 'NA'
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["X-Request-ID"] = rid
        return response
    finally:
        duration = (time() - start) * 1000
        logger.info("REQ end %s %s status=%s %.1fms", method, path, status, duration)

# 5) CORS
from fastapi.middleware.cors import CORSMiddleware
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 6) routers
from app.api import found, lost, matches

app.include_router(found.router)
app.include_router(lost.router)
app.include_router(matches.router)

# 7) endpoints
@app.get("/")
def root():
    return {"message": "Campus ID lost & found backend", "routes": [
        "/found/extract",
        "/found/upload",
        "/lost/report",
        "/matches/search",
        "/matches/confirm",
        "/matches/student/{student_id}",
        "/matches/stats",
        "/matches/consistency/{found_item_id}",
    ]}
