# apps/adapters/business/rest_api.py

"""
REST Business Gateway

Implements IBusinessGateway against the business application's
/api/<resource> endpoints. Responses may be bare JSON or wrapped in a
{success, data} envelope.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from apps.domain.models import BusinessServiceError

logger = logging.getLogger(__name__)


class RestBusinessGateway:
    """requests-based client for the business backend"""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        session: requests.Session = None,
    ):
        """
        Args:
            base_url: Root URL of the business application
            api_token: Bearer token (optional)
            timeout: Request timeout in seconds
            session: Optional requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = session or requests.Session()
        self._http.headers.update({"Accept": "application/json"})
        if api_token:
            self._http.headers.update({"Authorization": f"Bearer {api_token}"})

    def list_collection(self, resource: str) -> List[Dict[str, Any]]:
        data = self._request("GET", resource)
        if data is None:
            return []
        if not isinstance(data, list):
            raise BusinessServiceError(f"Expected a list from {resource}, got {type(data).__name__}")
        return data

    def get_company_profile(self) -> Optional[Dict[str, Any]]:
        return self._request("GET", "company-profile")

    def update_job(self, job_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"jobs/{job_id}", json=changes)

    def add_maintenance_log(self, equipment_id: str, log: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a maintenance entry

        The backend has no dedicated endpoint: the entry is appended to
        the equipment's maintenanceHistory and the record is written back,
        moving lastServiceDate forward if the entry is newer.
        """
        equipment = self._request("GET", f"equipment/{equipment_id}")
        if not equipment:
            raise BusinessServiceError(f"Equipment {equipment_id} not found")

        history = list(equipment.get("maintenanceHistory") or [])
        entry = {"id": f"maint-{len(history) + 1}-{log.get('date', '')}", **log}
        history.append(entry)

        last = equipment.get("lastServiceDate")
        newest = max([h.get("date") for h in history if h.get("date")] + ([last] if last else []))

        return self._request(
            "PUT",
            f"equipment/{equipment_id}",
            json={"maintenanceHistory": history, "lastServiceDate": newest},
        )

    def _request(self, method: str, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/api/{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            r = self._http.request(method, url, json=json, timeout=self.timeout)
        except requests.Timeout as e:
            raise BusinessServiceError(f"Request timeout - backend server may be unavailable ({url})") from e
        except requests.RequestException as e:
            raise BusinessServiceError(f"Cannot connect to backend server: {e}") from e

        if not r.ok:
            raise BusinessServiceError(f"API Error: {r.status_code} - {r.text[:500]}")

        if r.status_code == 204 or not r.content:
            return None

        try:
            body = r.json()
        except ValueError as e:
            raise BusinessServiceError(f"Non-JSON response from {endpoint}") from e

        return _unwrap(body)


def _unwrap(body: Any) -> Any:
    """{success, data} -> data; anything else is returned as is"""
    if isinstance(body, dict) and "data" in body and "success" in body:
        if body.get("success") is False:
            raise BusinessServiceError(body.get("message") or body.get("error") or "Request failed")
        return body["data"]
    return body
