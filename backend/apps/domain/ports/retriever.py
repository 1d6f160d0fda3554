# apps/domain/ports/retriever.py

"""
Context Retriever Port - Interface for retrieval augmentation

The retrieval index itself lives outside this service. The domain only
asks for supplementary text for a query.
"""

from typing import Protocol


class IContextRetriever(Protocol):
    """
    Interface for best-effort context lookup

    Implementations return plain text (possibly empty) relevant to a query.
    """

    def retrieve(self, query: str) -> str:
        """
        Find supplementary context for a user query

        Args:
            query: The user's message

        Returns:
            Retrieved context text, or "" if nothing relevant was found

        Raises:
            RetrieverError: If the lookup fails
        """
        ...
