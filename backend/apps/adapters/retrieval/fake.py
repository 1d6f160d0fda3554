# apps/adapters/retrieval/fake.py

"""
Fake Context Retriever for testing
"""

from typing import List, Optional


class FakeContextRetriever:
    """
    Fake retriever that returns predetermined context
    """

    def __init__(self, context: str = "", error: Optional[Exception] = None):
        """
        Initialize fake retriever

        Args:
            context: Text to return for every query
            error: If set, raised instead of returning context
        """
        self.context = context
        self.error = error
        self.queries: List[str] = []

    def retrieve(self, query: str) -> str:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.context
