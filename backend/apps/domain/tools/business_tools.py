# apps/domain/tools/business_tools.py

"""
Business Tools - Handlers the assistant can call

Query tools read the snapshot the turn is working with. Mutating tools
call the business gateway and report the record they changed as an
EntityUpdate so the snapshot can be patched without a full refresh.
"""

import logging
from typing import Any, Dict

from apps.domain.models import (
    BusinessSnapshot,
    EntityUpdate,
    Equipment,
    Job,
    JobStatus,
    ToolDispatchError,
    ToolResult,
    normalize_job_status,
)
from apps.domain.ports.business import IBusinessGateway
from apps.domain.services.context_store import snapshot_metrics
from apps.domain.tools.registry import ToolName, ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

JOB_STATUSES = [s.value for s in JobStatus]

_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _normalize_status_argument(arguments: Dict[str, Any]) -> Dict[str, Any]:
    if "status" in arguments and arguments["status"] is not None:
        arguments["status"] = normalize_job_status(arguments["status"])
    return arguments


class BusinessTools:
    """
    Tool handlers bound to a business gateway

    Use register_business_tools() to install them in a ToolRegistry.
    """

    def __init__(self, gateway: IBusinessGateway):
        self._gateway = gateway

    def update_job_status(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        job_id = args["jobId"]
        status = args["status"]

        record = self._gateway.update_job(job_id, {"status": status})
        if not record:
            raise ToolDispatchError(f"Job {job_id} was not returned by the backend")

        job = Job.from_dict(record)
        logger.info(f"Job {job_id} status updated to {job.status}")

        return ToolResult.ok(
            {"job": job.to_dict(), "message": f"Updated job status to {status}"},
            updates=(EntityUpdate("jobs", job),),
        )

    def get_jobs_by_status(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        status = args["status"]
        jobs = [job.to_dict() for job in snapshot.jobs if job.status == status]
        return ToolResult.ok({"jobs": jobs, "count": len(jobs)})

    def get_outstanding_invoices(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        unpaid = [invoice for invoice in snapshot.invoices if not invoice.is_paid]
        total = round(sum(invoice.amount for invoice in unpaid), 2)
        return ToolResult.ok({
            "invoices": [invoice.to_dict() for invoice in unpaid],
            "count": len(unpaid),
            "totalOutstanding": total,
        })

    def get_available_equipment(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        available = [eq.to_dict() for eq in snapshot.equipment if eq.status == "Operational"]
        return ToolResult.ok({"equipment": available, "count": len(available)})

    def schedule_maintenance(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        equipment_id = args["equipmentId"]
        if snapshot.find("equipment", equipment_id) is None:
            raise ToolDispatchError(f"Equipment {equipment_id} not found")

        record = self._gateway.add_maintenance_log(
            equipment_id,
            {"date": args["date"], "description": args["description"]},
        )
        equipment = Equipment.from_dict(record)

        return ToolResult.ok(
            {
                "equipment": equipment.to_dict(),
                "message": f"Scheduled maintenance for {equipment.name or equipment_id} on {args['date']}",
            },
            updates=(EntityUpdate("equipment", equipment),),
        )

    def get_business_metrics(self, args: Dict[str, Any], snapshot: BusinessSnapshot) -> ToolResult:
        return ToolResult.ok({"metrics": snapshot_metrics(snapshot)})


def register_business_tools(registry: ToolRegistry, gateway: IBusinessGateway) -> ToolRegistry:
    """
    Install the business tools in a registry

    Args:
        registry: Registry to populate
        gateway: Business backend the mutating tools write through

    Returns:
        The same registry, for chaining
    """
    tools = BusinessTools(gateway)

    specs = [
        ToolSpec(
            name=ToolName.UPDATE_JOB_STATUS,
            description="Update the status of a job.",
            parameters={
                "type": "object",
                "properties": {
                    "jobId": {"type": "string", "description": "ID of the job"},
                    "status": {
                        "type": "string",
                        "description": "New job status",
                        "enum": JOB_STATUSES,
                    },
                },
                "required": ["jobId", "status"],
            },
            handler=tools.update_job_status,
            prepare=_normalize_status_argument,
        ),
        ToolSpec(
            name=ToolName.GET_JOBS_BY_STATUS,
            description="Retrieve all jobs filtered by status.",
            parameters={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "description": "Job status to filter by",
                        "enum": JOB_STATUSES,
                    },
                },
                "required": ["status"],
            },
            handler=tools.get_jobs_by_status,
            prepare=_normalize_status_argument,
        ),
        ToolSpec(
            name=ToolName.GET_OUTSTANDING_INVOICES,
            description="List invoices that have not been paid, with the total outstanding amount.",
            parameters={"type": "object", "properties": {}},
            handler=tools.get_outstanding_invoices,
        ),
        ToolSpec(
            name=ToolName.GET_AVAILABLE_EQUIPMENT,
            description="List equipment that is operational and available for jobs.",
            parameters={"type": "object", "properties": {}},
            handler=tools.get_available_equipment,
        ),
        ToolSpec(
            name=ToolName.SCHEDULE_MAINTENANCE,
            description="Record a maintenance entry for a piece of equipment.",
            parameters={
                "type": "object",
                "properties": {
                    "equipmentId": {"type": "string", "description": "ID of the equipment"},
                    "date": {
                        "type": "string",
                        "description": "Maintenance date (YYYY-MM-DD)",
                        "pattern": _DATE_PATTERN,
                    },
                    "description": {"type": "string", "description": "Work to be done"},
                },
                "required": ["equipmentId", "date", "description"],
            },
            handler=tools.schedule_maintenance,
        ),
        ToolSpec(
            name=ToolName.GET_BUSINESS_METRICS,
            description="Get headline business metrics (customers, leads, jobs, equipment, invoices).",
            parameters={"type": "object", "properties": {}},
            handler=tools.get_business_metrics,
        ),
    ]

    for spec in specs:
        registry.register(spec)

    return registry
