from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env.local", env_file_encoding="utf-8", extra="ignore")

    # Firebase
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    FIREBASE_CREDENTIALS_JSON_STRING: Optional[str] = None

    # Record storage backend: firestore (default) | memory (local runs / tests)
    STORE_BACKEND: str = "firestore"

    # OCR (Tesseract)
    TESSERACT_CMD: Optional[str] = None  # explicit binary path when not on PATH
    OCR_LANGUAGE: str = "eng"
    OCR_PSM_MODES: str = "3,6,11,12"
    OCR_MAX_CONCURRENCY: int = 4
    OCR_MAX_IMAGE_BYTES: int = 5 * 1024 * 1024  # 5MB
    OCR_MAX_IMAGE_SIDE: int = 1600  # source is shrunk to fit before the 2x/3x variants

    # Match watcher
    MATCH_POLL_INTERVAL_SECONDS: float = 30.0

    # Logging
    LOG_JSON: bool = False

    def psm_modes(self) -> List[int]:
        modes = []
        for raw in (self.OCR_PSM_MODES or "").split(","):
            raw = raw.strip()
            if raw.isdigit():
                modes.append(int(raw))
        return modes or [3]


settings = Settings()
