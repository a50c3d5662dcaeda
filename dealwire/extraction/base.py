from abc import ABC, abstractmethod

from dealwire.extraction.models import DealExtraction


class BaseExtractor(ABC):
    """Contract for the extraction capability."""

    @abstractmethod
    def extract(self, text: str) -> DealExtraction:
        """Turn document text into a validated deal extraction.

        Args:
            text: Canonical request text built from a document.

        Returns:
            DealExtraction that passed schema validation.

        Raises:
            ExtractionError: if the provider cannot be reached or fails.
            SchemaError: if the provider output is malformed.
        """
