"""Format extractor implementations and contracts."""

import logging

from folio.config import ExtractionSettings
from folio.extraction.models import SourceFormat

from .base import CancellationSignal, Extractor, is_cancelled
from .unsupported import UnsupportedExtractor

logger = logging.getLogger(__name__)

try:
    from .pdf_extractor import PdfExtractor
except ImportError:
    PdfExtractor = None
    logger.warning("PDF support unavailable: install 'pymupdf'")

try:
    from .djvu_extractor import DjvuExtractor
except ImportError:
    DjvuExtractor = None
    logger.warning("DjVu support unavailable: install 'pymupdf'")

try:
    from .epub_extractor import EpubExtractor
except ImportError:
    EpubExtractor = None
    logger.warning("EPUB support unavailable: install 'EbookLib'")

try:
    from .fb2_extractor import Fb2Extractor
except ImportError:
    Fb2Extractor = None
    logger.warning("FB2 support unavailable: install 'lxml'")

try:
    from .txt_extractor import TxtExtractor
except ImportError:
    TxtExtractor = None
    logger.warning("TXT support unavailable: install 'charset-normalizer'")


def build_default_extractors(settings: ExtractionSettings | None = None) -> dict[SourceFormat, Extractor]:
    """Return the extractor map for every format whose backend is installed."""
    active = settings or ExtractionSettings()
    extractors: dict[SourceFormat, Extractor] = {}
    if PdfExtractor is not None:
        extractors[SourceFormat.PDF] = PdfExtractor(active)
    if DjvuExtractor is not None:
        extractors[SourceFormat.DJVU] = DjvuExtractor(active)
    if EpubExtractor is not None:
        extractors[SourceFormat.EPUB] = EpubExtractor(active)
    if Fb2Extractor is not None:
        extractors[SourceFormat.FB2] = Fb2Extractor(active)
    if TxtExtractor is not None:
        extractors[SourceFormat.TXT] = TxtExtractor(SourceFormat.TXT, active)
        extractors[SourceFormat.MD] = TxtExtractor(SourceFormat.MD, active)
    return extractors


__all__ = [
    "CancellationSignal",
    "DjvuExtractor",
    "EpubExtractor",
    "Extractor",
    "Fb2Extractor",
    "PdfExtractor",
    "TxtExtractor",
    "UnsupportedExtractor",
    "build_default_extractors",
    "is_cancelled",
]
