# apps/domain/tests/test_retrieval.py
"""
Tests for retrieval augmentation
"""
from apps.adapters.retrieval.fake import FakeContextRetriever
from apps.domain.models import RetrieverError
from apps.domain.services.retrieval import RetrievalAugmenter


class TestRetrievalAugmenter:
    """Test the outgoing message rewrite"""

    def test_context_wraps_query(self):
        augmenter = RetrievalAugmenter(FakeContextRetriever(context="Oaks: prune in winter"))

        message = augmenter.augment("When should I prune oaks?")

        assert message == (
            "User Question: When should I prune oaks?\n\n---\n"
            "Context:\nOaks: prune in winter\n---"
        )

    def test_empty_context_leaves_query_unchanged(self):
        augmenter = RetrievalAugmenter(FakeContextRetriever(context=""))

        assert augmenter.augment("hello") == "hello"

    def test_whitespace_context_leaves_query_unchanged(self):
        augmenter = RetrievalAugmenter(FakeContextRetriever(context="  \n "))

        assert augmenter.augment("hello") == "hello"

    def test_retriever_failure_is_swallowed(self):
        retriever = FakeContextRetriever(error=RetrieverError("index offline"))
        augmenter = RetrievalAugmenter(retriever)

        assert augmenter.augment("hello") == "hello"
        assert retriever.queries == ["hello"]
