# logging_config.py
import logging
import logging.config
import logging.handlers
from pathlib import Path
from datetime import datetime
import json
import contextvars

# request-scoped identifier
_request_id_ctx = contextvars.ContextVar("request_id", default="-")

class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get("-")
        return True

def set_request_id(req_id: str):
    _request_id_ctx.set(req_id)

def get_logger(name: str = __name__) -> logging.Logger:
    return logging.getLogger(name)

LOG_DIR = Path("logs")
LOG_DIR.mkdir(parents=True, exist_ok=True)

def _rotating_file(filename: str) -> dict:
    return {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": "INFO",
        "formatter": "default",
        "filters": ["request_id"],
        "filename": str(LOG_DIR / filename),
        "when": "midnight",
        "interval": 1,
        "backupCount": 30,
        "encoding": "utf-8",
    }

def build_dict_config(json_fmt: bool = False) -> dict:
    fmt = (
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s",'
        '"request_id":"%(request_id)s","msg":"%(message)s"}'
        if json_fmt
        else '%(asctime)s | %(levelname)s | %(name)s | rid=%(request_id)s | %(message)s'
    )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "format": fmt,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "default",
                "filters": ["request_id"],
            },
            "file_app": _rotating_file("app.log"),
            "file_ocr": _rotating_file("ocr.log"),
            "file_matching": _rotating_file("matching.log"),
        },
        "loggers": {
            # root: everything else
            "": {
                "level": "INFO",
                "handlers": ["console", "file_app"],
            },
            # OCR passes and identity extraction
            "ocr": {
                "level": "INFO",
                "handlers": ["console", "file_ocr"],
                "propagate": False,
            },
            # scoring, candidate search and confirmations
            "matching": {
                "level": "INFO",
                "handlers": ["console", "file_matching"],
                "propagate": False,
            },
            "uvicorn": {"level": "INFO"},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"level": "INFO"},
        },
    }

def setup_logging(json_fmt: bool = False):
    logging.config.dictConfig(build_dict_config(json_fmt=json_fmt))

# ===== event helpers =====
def log_ocr_pass(variant: str, psm: int, success: bool,
                 confidence: float | None = None, chars: int | None = None,
                 error: str | None = None, logger: logging.Logger | None = None):
    logger = logger or get_logger("ocr")
    if success:
        logger.info("OCR pass ok: variant=%s psm=%s conf=%.1f chars=%s", variant, psm, confidence or 0.0, chars)
    else:
        logger.warning("OCR pass failed: variant=%s psm=%s err=%s", variant, psm, error)

def log_extraction_result(passes: int, name: str | None, registration_number: str | None,
                          logger: logging.Logger | None = None):
    logger = logger or get_logger("ocr")
    logger.info("EXTRACTION_RESULT: %s", json.dumps({
        "timestamp": datetime.now().isoformat(),
        "passes": passes,
        "name": name,
        "registration_number": registration_number,
    }, ensure_ascii=False))

def log_match_event(event_type: str, details: dict, logger: logging.Logger | None = None):
    logger = logger or get_logger("matching")
    logger.info("MATCH_EVENT: %s", json.dumps({
        "timestamp": datetime.now().isoformat(),
        "event_type": event_type,
        "details": details,
    }, ensure_ascii=False, default=str))

def log_confirmation(found_item_id: str, lost_item_id: str, student_id: str, success: bool,
                     error: str | None = None, logger: logging.Logger | None = None):
    logger = logger or get_logger("matching")
    if success:
        logger.info("match confirmed: found=%s lost=%s student=%s", found_item_id, lost_item_id, student_id)
    else:
        logger.error("match confirmation failed: found=%s lost=%s student=%s err=%s",
                     found_item_id, lost_item_id, student_id, error)
