# apps/domain/services/retrieval.py

"""
Retrieval Augmenter - Optional context enrichment for user messages

Advisory only: any retriever failure means "no augmentation".
"""

import logging

from apps.domain.ports.retriever import IContextRetriever

logger = logging.getLogger(__name__)


class RetrievalAugmenter:
    """Wraps a user query with retrieved context when there is any"""

    TEMPLATE = "User Question: {query}\n\n---\nContext:\n{context}\n---"

    def __init__(self, retriever: IContextRetriever):
        self._retriever = retriever

    def augment(self, query: str) -> str:
        """
        Build the outgoing message for a query

        Args:
            query: The user's original message

        Returns:
            The query wrapped with retrieved context, or the query
            unchanged if retrieval returned nothing or failed
        """
        try:
            context = self._retriever.retrieve(query)
        except Exception as e:
            logger.warning(f"Context retrieval unavailable: {e}")
            return query

        if not context or not context.strip():
            logger.debug("No retrieved context for query")
            return query

        logger.info(f"Retrieved context added ({len(context)} chars)")
        return self.TEMPLATE.format(query=query, context=context)
