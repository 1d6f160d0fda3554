# apps/domain/ports/business.py

"""
Business Gateway Port - Interface to the system of record

Tool handlers and the snapshot loader talk to the surrounding
business application only through this contract.
"""

from typing import Any, Dict, List, Optional, Protocol


class IBusinessGateway(Protocol):
    """
    Interface for business domain services

    Methods return API-shaped dicts (camelCase keys). Mutations return
    the full updated record so callers can refresh one snapshot slice.
    """

    def list_collection(self, resource: str) -> List[Dict[str, Any]]:
        """
        Fetch all records of a resource

        Args:
            resource: API resource name (e.g. 'jobs', 'pay_periods')

        Returns:
            List of record dicts

        Raises:
            BusinessServiceError: If the request fails
        """
        ...

    def get_company_profile(self) -> Optional[Dict[str, Any]]:
        """Fetch the company profile (None if not configured)"""
        ...

    def update_job(self, job_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply changes to a job

        Args:
            job_id: Job identifier
            changes: Fields to update, e.g. {'status': 'completed'}

        Returns:
            The updated job record

        Raises:
            BusinessServiceError: If the job does not exist or update fails
        """
        ...

    def add_maintenance_log(self, equipment_id: str, log: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a maintenance log entry to a piece of equipment

        Args:
            equipment_id: Equipment identifier
            log: Entry with 'date' and 'description'

        Returns:
            The updated equipment record

        Raises:
            BusinessServiceError: If the equipment does not exist or update fails
        """
        ...
