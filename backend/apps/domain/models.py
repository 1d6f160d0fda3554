# apps/domain/models.py

"""
Domain Models - Value Objects and Entities

Value Objects: Immutable, defined by attributes (e.g., Job, ToolCall)
Aggregates: BusinessSnapshot - a versioned, read-only view of the business
"""

import json
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class MessageRole(str, Enum):
    """Message role in an assistant conversation"""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class JobStatus(str, Enum):
    """Job lifecycle states understood by the backend"""
    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TurnStatus(str, Enum):
    """Outcome of a chat turn"""
    OK = "ok"
    RATE_LIMITED = "rate_limited"


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key (API payloads mix camelCase and snake_case)"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _rest(data: Dict[str, Any], *known: str) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


def normalize_job_status(value: Any) -> str:
    """'In Progress' / 'in-progress' / 'Completed' -> 'in_progress' / 'completed'"""
    return re.sub(r"[\s\-]+", "_", str(value).strip()).lower()


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


# ============================================================
# BUSINESS ENTITIES (Immutable)
# ============================================================

@dataclass(frozen=True)
class Client:
    """A customer account"""
    id: str
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None
    primary_email: Optional[str] = None
    primary_phone: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    _KEYS = ("id", "firstName", "first_name", "lastName", "last_name",
             "companyName", "company_name", "primaryEmail", "primary_email",
             "primaryPhone", "primary_phone")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Client":
        return cls(
            id=str(data["id"]),
            first_name=_pick(data, "firstName", "first_name", default=""),
            last_name=_pick(data, "lastName", "last_name", default=""),
            company_name=_pick(data, "companyName", "company_name"),
            primary_email=_pick(data, "primaryEmail", "primary_email"),
            primary_phone=_pick(data, "primaryPhone", "primary_phone"),
            attributes=_rest(data, *cls._KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "companyName": self.company_name,
            "primaryEmail": self.primary_email,
            "primaryPhone": self.primary_phone,
        }


@dataclass(frozen=True)
class Lead:
    """A sales lead"""
    id: str
    customer_name: str = ""
    status: str = "New"
    source: Optional[str] = None
    description: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        customer = data.get("customer")
        customer_name = customer.get("name", "") if isinstance(customer, dict) else ""
        return cls(
            id=str(data["id"]),
            customer_name=customer_name or _pick(data, "customerName", "customer_name", default=""),
            status=_pick(data, "status", default="New"),
            source=_pick(data, "source"),
            description=_pick(data, "description"),
            attributes=_rest(data, "id", "customer", "customerName", "customer_name",
                             "status", "source", "description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "customer": {"name": self.customer_name},
            "status": self.status,
            "source": self.source,
            "description": self.description,
        }


@dataclass(frozen=True)
class Quote:
    """A price quote sent to a customer"""
    id: str
    customer_name: str = ""
    status: str = "Draft"
    lead_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        return cls(
            id=str(data["id"]),
            customer_name=_pick(data, "customerName", "customer_name", default=""),
            status=_pick(data, "status", default="Draft"),
            lead_id=_pick(data, "leadId", "lead_id"),
            attributes=_rest(data, "id", "customerName", "customer_name",
                             "status", "leadId", "lead_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "customerName": self.customer_name,
            "status": self.status,
            "leadId": self.lead_id,
        }


@dataclass(frozen=True)
class Job:
    """A scheduled (or schedulable) unit of work"""
    id: str
    customer_name: str = ""
    status: str = JobStatus.UNSCHEDULED.value
    scheduled_date: Optional[str] = None
    assigned_crew: Tuple[str, ...] = ()
    quote_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        crew = _pick(data, "assignedCrew", "assigned_crew", default=[]) or []
        return cls(
            id=str(data["id"]),
            customer_name=_pick(data, "customerName", "customer_name", default=""),
            status=normalize_job_status(_pick(data, "status", default=JobStatus.UNSCHEDULED.value)),
            scheduled_date=_pick(data, "scheduledDate", "scheduled_date"),
            assigned_crew=tuple(crew),
            quote_id=_pick(data, "quoteId", "quote_id"),
            attributes=_rest(data, "id", "customerName", "customer_name", "status",
                             "scheduledDate", "scheduled_date", "assignedCrew",
                             "assigned_crew", "quoteId", "quote_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "customerName": self.customer_name,
            "status": self.status,
            "scheduledDate": self.scheduled_date,
            "assignedCrew": list(self.assigned_crew),
            "quoteId": self.quote_id,
        }


@dataclass(frozen=True)
class Invoice:
    """A customer invoice"""
    id: str
    customer_name: str = ""
    status: str = "Draft"
    amount: float = 0.0
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_paid(self) -> bool:
        return self.status == "Paid"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Invoice":
        return cls(
            id=str(data["id"]),
            customer_name=_pick(data, "customerName", "customer_name", default=""),
            status=_pick(data, "status", default="Draft"),
            amount=_as_float(_pick(data, "amount", "total", default=0)),
            attributes=_rest(data, "id", "customerName", "customer_name", "status", "amount"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "customerName": self.customer_name,
            "status": self.status,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class Employee:
    """A crew member"""
    id: str
    name: str = ""
    job_title: Optional[str] = None
    pay_rate: float = 0.0
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Employee":
        return cls(
            id=str(data["id"]),
            name=_pick(data, "name", default=""),
            job_title=_pick(data, "jobTitle", "job_title"),
            pay_rate=_as_float(_pick(data, "payRate", "pay_rate", default=0)),
            attributes=_rest(data, "id", "name", "jobTitle", "job_title", "payRate", "pay_rate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "name": self.name,
            "jobTitle": self.job_title,
            "payRate": self.pay_rate,
        }


@dataclass(frozen=True)
class Equipment:
    """A piece of equipment (chipper, bucket truck, ...)"""
    id: str
    name: str = ""
    status: str = "Operational"
    last_service_date: Optional[str] = None
    maintenance_history: Tuple[Dict[str, Any], ...] = field(default=(), compare=False)
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Equipment":
        history = _pick(data, "maintenanceHistory", "maintenance_history", default=[]) or []
        return cls(
            id=str(data["id"]),
            name=_pick(data, "name", default=""),
            status=_pick(data, "status", default="Operational"),
            last_service_date=_pick(data, "lastServiceDate", "last_service_date"),
            maintenance_history=tuple(history),
            attributes=_rest(data, "id", "name", "status", "lastServiceDate",
                             "last_service_date", "maintenanceHistory",
                             "maintenance_history"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "lastServiceDate": self.last_service_date,
            "maintenanceHistory": list(self.maintenance_history),
        }


@dataclass(frozen=True)
class PayrollRecord:
    id: str
    employee_id: Optional[str] = None
    pay_period_id: Optional[str] = None
    gross_pay: float = 0.0
    net_pay: float = 0.0
    overtime_pay: float = 0.0
    paid_at: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayrollRecord":
        return cls(
            id=str(data["id"]),
            employee_id=_pick(data, "employeeId", "employee_id"),
            pay_period_id=_pick(data, "payPeriodId", "pay_period_id"),
            gross_pay=_as_float(_pick(data, "grossPay", "gross_pay", default=0)),
            net_pay=_as_float(_pick(data, "netPay", "net_pay", default=0)),
            overtime_pay=_as_float(_pick(data, "overtimePay", "overtime_pay", default=0)),
            paid_at=_pick(data, "paidAt", "paid_at"),
            attributes=_rest(data, "id", "employeeId", "employee_id", "payPeriodId",
                             "pay_period_id", "grossPay", "gross_pay", "netPay",
                             "net_pay", "overtimePay", "overtime_pay", "paidAt", "paid_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "employeeId": self.employee_id,
            "payPeriodId": self.pay_period_id,
            "grossPay": self.gross_pay,
            "netPay": self.net_pay,
            "overtimePay": self.overtime_pay,
            "paidAt": self.paid_at,
        }


@dataclass(frozen=True)
class TimeEntry:
    id: str
    employee_id: Optional[str] = None
    job_id: Optional[str] = None
    hours: float = 0.0
    date: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeEntry":
        return cls(
            id=str(data["id"]),
            employee_id=_pick(data, "employeeId", "employee_id"),
            job_id=_pick(data, "jobId", "job_id"),
            hours=_as_float(_pick(data, "hoursWorked", "hours", default=0)),
            date=_pick(data, "date"),
            attributes=_rest(data, "id", "employeeId", "employee_id", "jobId", "job_id",
                             "hoursWorked", "hours", "date"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "employeeId": self.employee_id,
            "jobId": self.job_id,
            "hoursWorked": self.hours,
            "date": self.date,
        }


@dataclass(frozen=True)
class PayPeriod:
    id: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: str = "Open"
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayPeriod":
        return cls(
            id=str(data["id"]),
            start_date=_pick(data, "startDate", "start_date"),
            end_date=_pick(data, "endDate", "end_date"),
            status=_pick(data, "status", default="Open"),
            attributes=_rest(data, "id", "startDate", "start_date", "endDate",
                             "end_date", "status"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.attributes,
            "id": self.id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "status": self.status,
        }


@dataclass(frozen=True)
class CompanyProfile:
    company_name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompanyProfile":
        return cls(
            company_name=_pick(data, "companyName", "company_name", default=""),
            attributes=_rest(data, "companyName", "company_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {**self.attributes, "companyName": self.company_name}


# Collection name -> entity class. Names match the snapshot attributes.
ENTITY_TYPES = {
    "clients": Client,
    "leads": Lead,
    "quotes": Quote,
    "jobs": Job,
    "invoices": Invoice,
    "employees": Employee,
    "equipment": Equipment,
    "payroll_records": PayrollRecord,
    "time_entries": TimeEntry,
    "pay_periods": PayPeriod,
}

# Snapshot attribute -> camelCase key used by the backend API payloads
_PAYLOAD_KEYS = {
    "payroll_records": "payrollRecords",
    "time_entries": "timeEntries",
    "pay_periods": "payPeriods",
}


# ============================================================
# AGGREGATE
# ============================================================

@dataclass(frozen=True)
class BusinessSnapshot:
    """
    Point-in-time, read-only copy of the business data

    A snapshot is never mutated. Changes produce a new snapshot
    (see with_entity) that the ContextStore swaps in atomically.
    """
    clients: Tuple[Client, ...] = ()
    leads: Tuple[Lead, ...] = ()
    quotes: Tuple[Quote, ...] = ()
    jobs: Tuple[Job, ...] = ()
    invoices: Tuple[Invoice, ...] = ()
    employees: Tuple[Employee, ...] = ()
    equipment: Tuple[Equipment, ...] = ()
    payroll_records: Tuple[PayrollRecord, ...] = ()
    time_entries: Tuple[TimeEntry, ...] = ()
    pay_periods: Tuple[PayPeriod, ...] = ()
    company_profile: Optional[CompanyProfile] = None
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BusinessSnapshot":
        """
        Build a snapshot from an API-shaped payload

        Accepts both camelCase (payrollRecords) and snake_case
        (payroll_records) collection keys. Missing collections are empty.
        """
        collections = {}
        for name, entity_cls in ENTITY_TYPES.items():
            items = _pick(data, _PAYLOAD_KEYS.get(name, name), name, default=[]) or []
            collections[name] = tuple(entity_cls.from_dict(item) for item in items)

        profile = _pick(data, "companyProfile", "company_profile")
        captured_at = _pick(data, "capturedAt", "captured_at", "lastUpdated")
        if isinstance(captured_at, str):
            captured_at = datetime.fromisoformat(captured_at.replace("Z", "+00:00"))

        return cls(
            **collections,
            company_profile=CompanyProfile.from_dict(profile) if profile else None,
            captured_at=captured_at or datetime.now(timezone.utc),
        )

    def collection(self, name: str) -> Tuple[Any, ...]:
        if name not in ENTITY_TYPES:
            raise ValidationError(f"Unknown collection: {name}")
        return getattr(self, name)

    def find(self, name: str, entity_id: str) -> Optional[Any]:
        """Look up an entity by id in a collection"""
        for entity in self.collection(name):
            if entity.id == entity_id:
                return entity
        return None

    def with_entity(self, name: str, entity: Any) -> "BusinessSnapshot":
        """
        Return a copy with one entity replaced by id

        If the id is not present the snapshot is returned unchanged.
        """
        items = self.collection(name)
        if not any(item.id == entity.id for item in items):
            return self
        updated = tuple(entity if item.id == entity.id else item for item in items)
        return replace(self, **{name: updated})

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in ENTITY_TYPES)


# ============================================================
# TOOL CONTRACT
# ============================================================

@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model"""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict, compare=False)
    call_id: Optional[str] = None


@dataclass(frozen=True)
class EntityUpdate:
    """A single entity a tool changed in the system of record"""
    collection: str
    entity: Any


@dataclass(frozen=True)
class ToolResult:
    """
    Result of dispatching a ToolCall

    Exactly one of payload / error_message is meaningful depending on
    success. updates lists the snapshot slices a mutating tool touched.
    """
    success: bool
    payload: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    updates: Tuple[EntityUpdate, ...] = ()

    @classmethod
    def ok(cls, payload: Dict[str, Any], updates: Tuple[EntityUpdate, ...] = ()) -> "ToolResult":
        return cls(success=True, payload=payload, updates=tuple(updates))

    @classmethod
    def failure(cls, error_message: str) -> "ToolResult":
        return cls(success=False, error_message=error_message)

    @property
    def message(self) -> str:
        """Short human-readable description of the outcome"""
        if not self.success:
            return self.error_message or "Tool failed"
        if self.payload and "message" in self.payload:
            return str(self.payload["message"])
        return json.dumps(self.payload or {}, default=str)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, **(self.payload or {})}
        return {"success": False, "message": self.error_message}


@dataclass(frozen=True)
class ExecutedToolCall:
    """A tool call together with the result that was fed back to the model"""
    name: str
    arguments: Dict[str, Any]
    result: ToolResult

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": self.arguments, "result": self.result.to_dict()}


# ============================================================
# CONVERSATION
# ============================================================

@dataclass(frozen=True)
class ChatMessage:
    """
    A message in an assistant conversation

    is_thinking is presentation-only (in-progress tool output).
    """
    role: MessageRole
    text: str
    is_thinking: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "text": self.text, "isThinking": self.is_thinking}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        role = data.get("role", MessageRole.USER.value)
        # The frontend labels assistant messages as "model"
        if role == "model":
            role = MessageRole.ASSISTANT.value
        return cls(
            role=MessageRole(role),
            text=data.get("text", data.get("content", "")),
            is_thinking=bool(data.get("isThinking", data.get("is_thinking", False))),
        )


@dataclass(frozen=True)
class ModelReply:
    """One response from the language model channel"""
    text: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0


@dataclass(frozen=True)
class ChatResult:
    """
    Result of one chat turn

    tool_calls is None (not an empty list) when the model requested no tools.
    messages is the turn transcript in exchange order.
    """
    response: str
    tool_calls: Optional[List[ExecutedToolCall]] = None
    messages: List[ChatMessage] = field(default_factory=list)
    status: TurnStatus = TurnStatus.OK
    notice: Optional[str] = None
    retry_after: Optional[float] = None

    @property
    def is_rate_limited(self) -> bool:
        return self.status == TurnStatus.RATE_LIMITED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "tool_calls": [c.to_dict() for c in self.tool_calls] if self.tool_calls else None,
            "messages": [m.to_dict() for m in self.messages],
            "status": self.status.value,
            "notice": self.notice,
        }


# ============================================================
# DOMAIN EXCEPTIONS
# ============================================================

class DomainException(Exception):
    """Base exception for domain layer"""
    pass


class ValidationError(DomainException):
    """Raised when domain validation fails"""
    pass


class NotInitializedError(DomainException):
    """Raised when the business context is accessed before initialize()"""
    pass


class RateLimitedError(DomainException):
    """Raised when the request budget for the current window is spent"""

    def __init__(self, message: str, retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after

    @classmethod
    def after(cls, retry_after: float) -> "RateLimitedError":
        """Rejection with the standard user-facing wait notice"""
        retry_after = max(0.0, retry_after)
        return cls(
            "You're sending messages too quickly. "
            f"Please wait {int(retry_after) + 1} seconds and try again.",
            retry_after=retry_after,
        )


class ToolDispatchError(DomainException):
    """Raised inside a tool handler; always folded into a failed ToolResult"""
    pass


class ChannelFailureError(DomainException):
    """Raised when the model channel fails; terminal for the current turn"""

    user_message = "Sorry, I encountered an error processing your request. Please try again."


class LLMProviderError(DomainException):
    """Raised when LLM provider fails"""
    pass


class RetrieverError(DomainException):
    """Raised when retrieval fails"""
    pass


class BusinessServiceError(DomainException):
    """Raised when the business backend rejects or fails a request"""
    pass
