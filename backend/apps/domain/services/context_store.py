# apps/domain/services/context_store.py

"""
Context Store - Owns the current BusinessSnapshot

The store holds a pointer to an immutable snapshot. initialize/refresh
swap the pointer atomically and notify listeners (the SessionManager).
apply_entity_update is the one narrow write path: tools replace a single
entity on the current snapshot instead of re-fetching everything.
"""

import json
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from apps.domain.models import BusinessSnapshot, NotInitializedError

logger = logging.getLogger(__name__)

NOT_INITIALIZED_SUMMARY = "Assistant context is not yet initialized."

DEFAULT_SAMPLE_SIZE = 10


def snapshot_metrics(snapshot: BusinessSnapshot) -> Dict[str, Any]:
    """
    Aggregate counts for a snapshot

    Args:
        snapshot: Snapshot to measure

    Returns:
        Dict of counts plus the company name
    """
    jobs = snapshot.jobs
    equipment = snapshot.equipment

    return {
        "totalCustomers": len(snapshot.clients),
        "totalLeads": len(snapshot.leads),
        "newLeads": sum(1 for lead in snapshot.leads if lead.status == "New"),
        "totalQuotes": len(snapshot.quotes),
        "acceptedQuotes": sum(1 for q in snapshot.quotes if q.status == "Accepted"),
        "totalJobs": len(jobs),
        "scheduledJobs": sum(1 for j in jobs if j.status == "scheduled"),
        "inProgressJobs": sum(1 for j in jobs if j.status == "in_progress"),
        "completedJobs": sum(1 for j in jobs if j.status == "completed"),
        "totalEmployees": len(snapshot.employees),
        "totalEquipment": len(equipment),
        "operationalEquipment": sum(1 for e in equipment if e.status == "Operational"),
        "needsMaintenanceEquipment": sum(1 for e in equipment if e.status == "Needs Maintenance"),
        "totalInvoices": len(snapshot.invoices),
        "unpaidInvoices": sum(1 for i in snapshot.invoices if not i.is_paid),
        "companyName": (
            snapshot.company_profile.company_name
            if snapshot.company_profile and snapshot.company_profile.company_name
            else "Tree Service Company"
        ),
    }


class ContextStore:
    """
    Holder of the active business snapshot

    Responsibilities:
    - Assign versions and swap snapshots atomically
    - Produce the compact digest used in the system instruction
    - Notify listeners when the snapshot is (re)initialized
    """

    def __init__(self, sample_size: int = DEFAULT_SAMPLE_SIZE):
        """
        Initialize an empty store

        Args:
            sample_size: Max entities listed per collection in summaries
        """
        self._snapshot: Optional[BusinessSnapshot] = None
        self._version = 0
        self._lock = threading.Lock()
        self._listeners: List[Callable[[BusinessSnapshot], None]] = []
        self.sample_size = sample_size

    def add_listener(self, listener: Callable[[BusinessSnapshot], None]) -> None:
        """Register a callback invoked after initialize() and refresh()"""
        self._listeners.append(listener)

    def initialize(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        """
        Set the current snapshot

        Args:
            snapshot: Snapshot to install

        Returns:
            The installed snapshot (with its store-assigned version)
        """
        installed = self._swap(snapshot)
        logger.info(
            f"Assistant context initialized (version={installed.version}, "
            f"jobs={len(installed.jobs)}, clients={len(installed.clients)})"
        )
        self._notify(installed)
        return installed

    def refresh(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        """
        Replace the current snapshot with a newer one

        Sessions built from the old snapshot are rebuilt by listeners.
        Refreshing a store that was never initialized initializes it.
        """
        if not self.is_initialized():
            logger.info("Refresh called before initialize, initializing instead")
            return self.initialize(snapshot)

        installed = self._swap(snapshot)
        logger.info(f"Assistant context refreshed (version={installed.version})")
        self._notify(installed)
        return installed

    def current(self) -> BusinessSnapshot:
        """
        Get the active snapshot

        Raises:
            NotInitializedError: If initialize() was never called
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise NotInitializedError("Assistant context is not initialized.")
        return snapshot

    def is_initialized(self) -> bool:
        return self._snapshot is not None

    def apply_entity_update(self, collection: str, entity: Any) -> Optional[BusinessSnapshot]:
        """
        Replace one entity on the current snapshot

        This is a deliberate consistency shortcut: after a tool changes a
        single record we patch it in place (copy-on-write) rather than
        re-fetching the whole snapshot. The version is unchanged and no
        session rebuild is triggered.

        Args:
            collection: Snapshot collection name (e.g. 'jobs')
            entity: Updated entity, matched by id

        Returns:
            The new current snapshot, or None if not initialized
        """
        with self._lock:
            if self._snapshot is None:
                return None
            self._snapshot = self._snapshot.with_entity(collection, entity)
            return self._snapshot

    def summarize(self, snapshot: Optional[BusinessSnapshot] = None) -> str:
        """
        Build the compact JSON digest used in the system instruction

        Args:
            snapshot: Snapshot to summarize (defaults to the current one)

        Returns:
            JSON string. Before initialization returns a sentinel digest
            instead of raising, so cold-start prompts still work.
        """
        snapshot = snapshot or self._snapshot
        if snapshot is None:
            return json.dumps({"summary": NOT_INITIALIZED_SUMMARY})

        n = self.sample_size
        digest = {
            "summary": snapshot_metrics(snapshot),
            "capturedAt": snapshot.captured_at.isoformat(),
            "clients": [
                {"id": c.id, "firstName": c.first_name, "lastName": c.last_name,
                 "companyName": c.company_name}
                for c in snapshot.clients[:n]
            ],
            "leads": [
                {"id": l.id, "customer": l.customer_name, "status": l.status,
                 "source": l.source, "description": l.description}
                for l in snapshot.leads[:n]
            ],
            "quotes": [
                {"id": q.id, "customerName": q.customer_name, "status": q.status,
                 "leadId": q.lead_id}
                for q in snapshot.quotes[:n]
            ],
            "jobs": [
                {"id": j.id, "customerName": j.customer_name, "status": j.status,
                 "scheduledDate": j.scheduled_date, "assignedCrew": list(j.assigned_crew)}
                for j in snapshot.jobs[:n]
            ],
            "employees": [
                {"id": e.id, "name": e.name, "jobTitle": e.job_title, "payRate": e.pay_rate}
                for e in snapshot.employees[:n]
            ],
            "equipment": [
                {"id": eq.id, "name": eq.name, "status": eq.status,
                 "lastServiceDate": eq.last_service_date}
                for eq in snapshot.equipment[:n]
            ],
            "invoices": [
                {"id": i.id, "customerName": i.customer_name, "status": i.status,
                 "amount": i.amount}
                for i in snapshot.invoices[:n]
            ],
        }
        return json.dumps(digest, indent=2, default=str)

    def _swap(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        with self._lock:
            self._version += 1
            installed = replace(snapshot, version=self._version)
            self._snapshot = installed
            return installed

    def _notify(self, snapshot: BusinessSnapshot) -> None:
        for listener in self._listeners:
            listener(snapshot)
