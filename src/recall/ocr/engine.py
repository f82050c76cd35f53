"""Text extraction backends.

Two interchangeable backends turn image bytes into text: RapidOCR (ONNX
neural models, bundled with the package) and Tesseract through
``pytesseract`` (requires the ``tesseract`` binary). Backends are plain
objects constructed once and handed to the indexer.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

from recall.exceptions import ExtractionError, ExtractionUnavailableError
from recall.ingestion.image_loader import load_image, to_bgr_array
from recall.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

ENGINE_NAMES = ("rapidocr", "tesseract")


class TextExtractor(Protocol):
    engine_tag: str

    def extract(self, data: bytes) -> str:
        """Return the text found in the image, raising ``ExtractionError`` on failure."""
        ...


class RapidOcrExtractor:
    """Neural OCR using RapidOCR's ONNX Runtime models."""

    engine_tag = "rapidocr"

    def __init__(self) -> None:
        try:
            from rapidocr_onnxruntime import RapidOCR
        except ImportError as exc:
            raise ExtractionUnavailableError(
                "rapidocr_onnxruntime is not installed; install it or use --engine tesseract"
            ) from exc

        try:
            self._engine = RapidOCR()
        except Exception as exc:
            raise ExtractionUnavailableError(f"Failed to initialize RapidOCR: {exc}") from exc

    def extract(self, data: bytes) -> str:
        image = load_image(data)
        try:
            # RapidOCR returns (result, elapsed); result is a list of [box, text, score]
            result, _ = self._engine(to_bgr_array(image))
        except Exception as exc:
            raise ExtractionError(f"RapidOCR failed: {exc}") from exc

        if not result:
            return ""
        lines = [str(item[1]) for item in result if item and len(item) >= 2 and item[1]]
        return normalize_whitespace(lines)


class TesseractExtractor:
    """OCR through the external Tesseract binary."""

    engine_tag = "tesseract"

    def __init__(self, lang: str = "eng") -> None:
        try:
            import pytesseract
        except ImportError as exc:
            raise ExtractionUnavailableError("pytesseract is not installed") from exc

        try:
            version = pytesseract.get_tesseract_version()
        except Exception as exc:
            raise ExtractionUnavailableError(f"Tesseract is not available: {exc}") from exc

        LOGGER.debug("Using Tesseract %s", version)
        self._pytesseract = pytesseract
        self.lang = lang

    def extract(self, data: bytes) -> str:
        image = load_image(data)
        try:
            text = self._pytesseract.image_to_string(image, lang=self.lang)
        except Exception as exc:
            raise ExtractionError(f"Tesseract failed: {exc}") from exc
        return normalize_whitespace(text.splitlines())


_BACKENDS: dict[str, Callable[[], TextExtractor]] = {
    "rapidocr": RapidOcrExtractor,
    "tesseract": TesseractExtractor,
}


def create_extractor(name: str) -> TextExtractor:
    """Construct the backend registered under ``name``."""
    try:
        factory = _BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown OCR engine {name!r}; choose one of: {', '.join(ENGINE_NAMES)}"
        ) from None
    return factory()


class LazyExtractor:
    """Defers backend construction until the first image needs extraction.

    Model loading is skipped entirely when every file is fresh. If
    construction fails, each call raises ``ExtractionUnavailableError`` and
    construction is not retried.
    """

    def __init__(self, factory: Callable[[], TextExtractor], engine_tag: str) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._extractor: TextExtractor | None = None
        self._error: ExtractionUnavailableError | None = None
        self.engine_tag = engine_tag

    @classmethod
    def for_engine(cls, name: str) -> "LazyExtractor":
        if name not in _BACKENDS:
            raise ValueError(
                f"Unknown OCR engine {name!r}; choose one of: {', '.join(ENGINE_NAMES)}"
            )
        return cls(lambda: create_extractor(name), engine_tag=name)

    def _get(self) -> TextExtractor:
        with self._lock:
            if self._extractor is not None:
                return self._extractor
            if self._error is None:
                LOGGER.debug("Initializing OCR engine %s", self.engine_tag)
                try:
                    self._extractor = self._factory()
                    return self._extractor
                except ExtractionUnavailableError as exc:
                    LOGGER.error("OCR engine %s unavailable: %s", self.engine_tag, exc)
                    self._error = exc
            raise ExtractionUnavailableError(str(self._error))

    def extract(self, data: bytes) -> str:
        return self._get().extract(data)
