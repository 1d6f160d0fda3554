# apps/domain/services/snapshot_loader.py

"""
Snapshot Loader - Builds a BusinessSnapshot from the business backend
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from apps.domain.models import ENTITY_TYPES, BusinessSnapshot, CompanyProfile
from apps.domain.ports.business import IBusinessGateway

logger = logging.getLogger(__name__)


class SnapshotLoader:
    """
    Fetches every collection through the gateway

    A collection that fails to load is left empty (the company profile
    is left as None) so one broken endpoint doesn't block initialization.
    """

    def __init__(self, gateway: IBusinessGateway):
        self._gateway = gateway

    def load(self) -> BusinessSnapshot:
        collections: Dict[str, tuple] = {}

        for name, entity_type in ENTITY_TYPES.items():
            records = self._fetch(name)
            collections[name] = tuple(entity_type.from_dict(r) for r in records)

        try:
            profile_data = self._gateway.get_company_profile()
        except Exception as e:
            logger.warning(f"Could not load company profile: {e}")
            profile_data = None

        snapshot = BusinessSnapshot(
            company_profile=CompanyProfile.from_dict(profile_data) if profile_data else None,
            captured_at=datetime.now(timezone.utc),
            **collections,
        )
        logger.info(
            "Loaded business snapshot: "
            + ", ".join(f"{name}={len(items)}" for name, items in collections.items())
        )
        return snapshot

    def _fetch(self, name: str) -> List[Dict[str, Any]]:
        try:
            return list(self._gateway.list_collection(name) or [])
        except Exception as e:
            logger.warning(f"Could not load {name}, using empty collection: {e}")
            return []
