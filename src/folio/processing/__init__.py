"""Text-processing stages and the pipeline that orders them."""

from .context import ProcessingContext
from .pipeline import ProcessedText, ProcessingPipeline, TextProcessor, build_default_pipeline
from .semantic import SemanticProcessor, semanticate
from .soft_hyphen import SoftHyphenProcessor, insert_soft_hyphens
from .spelling import SpellingProcessor, modernize_spelling
from .typography import TypographyProcessor, typogrify
from .watermark import is_piracy_watermark

__all__ = [
    "ProcessedText",
    "ProcessingContext",
    "ProcessingPipeline",
    "SemanticProcessor",
    "SoftHyphenProcessor",
    "SpellingProcessor",
    "TextProcessor",
    "TypographyProcessor",
    "build_default_pipeline",
    "insert_soft_hyphens",
    "is_piracy_watermark",
    "modernize_spelling",
    "semanticate",
    "typogrify",
]
