from dealwire.extraction.base import BaseExtractor
from dealwire.extraction.exceptions import EnrichmentError, ExtractionError, SchemaError
from dealwire.extraction.extractor import Extractor
from dealwire.extraction.factory import ExtractorFactory
from dealwire.extraction.models import DealExtraction

__all__ = [
    "BaseExtractor",
    "DealExtraction",
    "EnrichmentError",
    "ExtractionError",
    "Extractor",
    "ExtractorFactory",
    "SchemaError",
]
