# backend/conftest.py

"""
Pytest configuration and fixtures.
"""
import pytest

from apps.adapters.business.fake import InMemoryBusinessGateway
from apps.adapters.llm.fake import FakeLLM
from apps.adapters.retrieval.fake import FakeContextRetriever
from apps.adapters.throttling.fake import FakeRateLimiter
from apps.domain.models import BusinessSnapshot
from apps.domain.services.assistant import AssistantOrchestrator
from apps.domain.services.snapshot_loader import SnapshotLoader
from apps.domain.tools import ToolRegistry, register_business_tools
from apps.infrastructure.container import reset_assistant


BUSINESS_DATA = {
    "clients": [
        {"id": "C1", "firstName": "Ada", "lastName": "Park", "companyName": "Park Estates"},
        {"id": "C2", "firstName": "Ben", "lastName": "Ortiz"},
    ],
    "leads": [
        {"id": "L1", "customer": {"name": "Ada Park"}, "status": "New", "source": "Website"},
    ],
    "quotes": [
        {"id": "Q1", "customerName": "Ada Park", "status": "Accepted", "leadId": "L1"},
    ],
    "jobs": [
        {"id": "J1", "customerName": "Ada Park", "status": "scheduled",
         "scheduledDate": "2024-05-01", "assignedCrew": ["E1"], "quoteId": "Q1"},
        {"id": "J2", "customerName": "Ben Ortiz", "status": "in_progress",
         "scheduledDate": "2024-04-28", "assignedCrew": ["E1", "E2"]},
    ],
    "invoices": [
        {"id": "I1", "customerName": "Ada Park", "status": "Sent", "amount": 1200.0},
        {"id": "I2", "customerName": "Ben Ortiz", "status": "Paid", "amount": 450.0},
        {"id": "I3", "customerName": "Ben Ortiz", "status": "Overdue", "amount": 300.5},
    ],
    "employees": [
        {"id": "E1", "name": "Sam Reed", "jobTitle": "Climber", "payRate": 42},
        {"id": "E2", "name": "Kim Lo", "jobTitle": "Groundsman", "payRate": 28},
    ],
    "equipment": [
        {"id": "EQ1", "name": "Chipper", "status": "Operational", "lastServiceDate": "2024-01-10"},
        {"id": "EQ2", "name": "Stump Grinder", "status": "Needs Maintenance",
         "lastServiceDate": "2023-11-02"},
    ],
}

COMPANY_PROFILE = {"companyName": "Evergreen Tree Care"}


@pytest.fixture
def business_data():
    return {name: [dict(r) for r in records] for name, records in BUSINESS_DATA.items()}


@pytest.fixture
def gateway(business_data):
    return InMemoryBusinessGateway(collections=business_data, company_profile=COMPANY_PROFILE)


@pytest.fixture
def snapshot(business_data):
    return BusinessSnapshot.from_dict({**business_data, "companyProfile": COMPANY_PROFILE})


@pytest.fixture
def empty_snapshot():
    return BusinessSnapshot.from_dict({"clients": [], "jobs": []})


@pytest.fixture
def registry(gateway):
    return register_business_tools(ToolRegistry(), gateway)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def retriever():
    return FakeContextRetriever()


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    return FakeRateLimiter(max_requests=15, window_seconds=60, clock=clock)


@pytest.fixture
def assistant(fake_llm, registry, retriever, rate_limiter, gateway):
    return AssistantOrchestrator(
        llm=fake_llm,
        registry=registry,
        retriever=retriever,
        rate_limiter=rate_limiter,
        snapshot_loader=SnapshotLoader(gateway),
    )


@pytest.fixture(autouse=True)
def fresh_process_assistant():
    """Every test starts without a process-wide assistant"""
    reset_assistant()
    yield
    reset_assistant()


@pytest.fixture(autouse=True)
def clear_cache():
    """The shared request budget lives in the cache"""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()
