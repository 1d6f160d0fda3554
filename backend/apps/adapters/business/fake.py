# apps/adapters/business/fake.py

"""
In-memory Business Gateway

Stores API-shaped records in dicts. Used by tests and local development
when no business backend is running.
"""

import copy
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from apps.domain.models import BusinessServiceError

logger = logging.getLogger(__name__)


class InMemoryBusinessGateway:
    """
    In-memory implementation of IBusinessGateway

    Records are keyed by resource then id. Returned records are copies,
    so callers never share state with the gateway.
    """

    def __init__(
        self,
        collections: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None,
        company_profile: Optional[Dict[str, Any]] = None,
    ):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for resource, records in (collections or {}).items():
            self._data[resource] = {r["id"]: copy.deepcopy(r) for r in records}
        self._company_profile = copy.deepcopy(company_profile)
        self.failing: set = set()
        self.calls: List[tuple] = []

    def list_collection(self, resource: str) -> List[Dict[str, Any]]:
        self.calls.append(("list", resource))
        self._maybe_fail(resource)
        return [copy.deepcopy(r) for r in self._data.get(resource, {}).values()]

    def get_company_profile(self) -> Optional[Dict[str, Any]]:
        self.calls.append(("company_profile",))
        self._maybe_fail("company-profile")
        return copy.deepcopy(self._company_profile)

    def update_job(self, job_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("update_job", job_id, dict(changes)))
        self._maybe_fail("jobs")
        job = self._get("jobs", job_id)
        job.update(changes)
        logger.debug(f"Job {job_id} updated with {changes}")
        return copy.deepcopy(job)

    def add_maintenance_log(self, equipment_id: str, log: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("add_maintenance_log", equipment_id, dict(log)))
        self._maybe_fail("equipment")
        equipment = self._get("equipment", equipment_id)

        entry = {"id": f"maint-{uuid.uuid4().hex[:8]}", **log}
        history = list(equipment.get("maintenanceHistory") or []) + [entry]
        equipment["maintenanceHistory"] = history

        last = equipment.get("lastServiceDate")
        if log.get("date") and (not last or log["date"] > last):
            equipment["lastServiceDate"] = log["date"]

        return copy.deepcopy(equipment)

    def _get(self, resource: str, record_id: str) -> Dict[str, Any]:
        record = self._data.get(resource, {}).get(record_id)
        if record is None:
            raise BusinessServiceError(f"{resource} record {record_id} not found")
        return record

    def _maybe_fail(self, resource: str) -> None:
        if resource in self.failing:
            raise BusinessServiceError(f"{resource} endpoint unavailable")
