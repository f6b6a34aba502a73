"""Multi-pass Tesseract OCR over preprocessed variants of an ID photo.

Every (variant x page segmentation mode) pair is one independent pass; passes
run concurrently in worker threads and whichever succeed feed the extractor.
"""
from __future__ import annotations
import asyncio
import io
from typing import Callable, List, Optional, Sequence, Tuple

import pytesseract
from PIL import Image, ImageOps

from config import settings
from app.models.ids import ExtractedIdentity, OCRAttempt
from app.services import id_extractor
from app.scripts.logging_config import get_logger, log_extraction_result, log_ocr_pass

logger = get_logger("ocr")

CONTRAST_FACTOR = 1.8
THRESHOLD_LEVEL = 128

if settings.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


def _scale(img: Image.Image, factor: int) -> Image.Image:
    return img.resize((img.width * factor, img.height * factor), Image.Resampling.LANCZOS)


def _contrast(img: Image.Image, factor: float = CONTRAST_FACTOR) -> Image.Image:
    # stretch around mid-grey, clamp to 0..255
    intercept = 128 * (1 - factor)
    return img.point(lambda v: max(0, min(255, int(v * factor + intercept))))


def _threshold(img: Image.Image, level: int = THRESHOLD_LEVEL) -> Image.Image:
    return img.convert("L").point(lambda v: 255 if v > level else 0)


# name -> builder, applied to the RGB source
VARIANTS: List[Tuple[str, Callable[[Image.Image], Image.Image]]] = [
    ("scale2", lambda im: _scale(im, 2)),
    ("scale3", lambda im: _scale(im, 3)),
    ("contrast2", lambda im: _contrast(_scale(im, 2))),
    ("contrast3", lambda im: _contrast(_scale(im, 3))),
    ("threshold2", lambda im: _threshold(_scale(im, 2))),
    ("invert2", lambda im: ImageOps.invert(_scale(im, 2))),
]


def load_image(image_bytes: bytes, max_side: Optional[int] = None) -> Image.Image:
    img = Image.open(io.BytesIO(image_bytes))
    img = ImageOps.exif_transpose(img)
    img = img.convert("RGB")
    side = max_side or settings.OCR_MAX_IMAGE_SIDE
    if max(img.size) > side:
        # in place, keeps aspect ratio
        img.thumbnail((side, side), Image.Resampling.LANCZOS)
    return img


def preprocess(img: Image.Image) -> List[Tuple[str, Image.Image]]:
    out = []
    for name, build in VARIANTS:
        try:
            out.append((name, build(img)))
        except Exception as e:
            logger.warning("preprocess variant=%s failed: %s", name, e)
    return out


def recognize(image: Image.Image, language: str, psm: int, variant: str = "-") -> OCRAttempt:
    """One Tesseract pass; text rebuilt line by line from word boxes."""
    data = pytesseract.image_to_data(
        image, lang=language, config=f"--psm {psm}", output_type=pytesseract.Output.DICT
    )
    lines: List[str] = []
    current_key = None
    words: List[str] = []
    confs: List[float] = []
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        try:
            conf = float(data["conf"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            conf = -1.0
        if not word:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        if key != current_key and words:
            lines.append(" ".join(words))
            words = []
        current_key = key
        words.append(word)
        if conf >= 0:
            confs.append(conf)
    if words:
        lines.append(" ".join(words))
    confidence = sum(confs) / len(confs) if confs else 0.0
    return OCRAttempt(text="\n".join(lines), confidence=confidence, psm=psm, variant=variant)


async def run_passes(
    variants: Sequence[Tuple[str, Image.Image]],
    psm_modes: Sequence[int],
    language: Optional[str] = None,
    max_concurrency: Optional[int] = None,
) -> List[OCRAttempt]:
    """Scatter-gather all passes; failed passes are logged and dropped."""
    language = language or settings.OCR_LANGUAGE
    sem = asyncio.Semaphore(max(1, max_concurrency or settings.OCR_MAX_CONCURRENCY))

    async def _one(name: str, image: Image.Image, psm: int) -> OCRAttempt:
        async with sem:
            return await asyncio.to_thread(recognize, image, language, psm, name)

    jobs = [(name, psm) for name, _ in variants for psm in psm_modes]
    results = await asyncio.gather(
        *[_one(name, image, psm) for name, image in variants for psm in psm_modes],
        return_exceptions=True,
    )
    attempts: List[OCRAttempt] = []
    for (name, psm), res in zip(jobs, results):
        if isinstance(res, BaseException):
            log_ocr_pass(name, psm, False, error=str(res), logger=logger)
            continue
        log_ocr_pass(name, psm, True, confidence=res.confidence, chars=len(res.text), logger=logger)
        attempts.append(res)
    return attempts


def ensure_tesseract() -> str:
    try:
        return str(pytesseract.get_tesseract_version())
    except Exception as e:
        raise RuntimeError(f"tesseract_unavailable: {e}") from e


async def read_identity(image_bytes: bytes) -> Tuple[ExtractedIdentity, List[OCRAttempt]]:
    """Image bytes -> best-guess identity plus the passes it was built from.

    Decoding and preprocessing run in a worker thread, off the event loop.
    """
    img = await asyncio.to_thread(load_image, image_bytes)
    variants = await asyncio.to_thread(preprocess, img)
    attempts = await run_passes(variants, settings.psm_modes())
    logger.info("ocr passes ok=%d of %d", len(attempts), len(variants) * len(settings.psm_modes()))
    identity = id_extractor.extract([a.text for a in attempts])
    log_extraction_result(len(attempts), identity.name, identity.registration_number, logger=logger)
    return identity, attempts
