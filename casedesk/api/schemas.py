"""
Pydantic schemas for API request/response models.

Update requests carry the editor's payload together with the concurrency
metadata (base version, base snapshot, dirty fields, resolve mode).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from casedesk.concurrency.models import ResolveMode, UpdateMeta


# ============================================================================
# Common schemas
# ============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class PayloadSchema(BaseSchema):
    """Editable field set; unknown keys are rejected instead of dropped."""

    model_config = ConfigDict(from_attributes=True, extra="forbid")

    def to_values(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent, in JSON form."""
        return self.model_dump(exclude_unset=True, mode="json")


class UpdateMetaSchema(BaseSchema):
    """Concurrency metadata sent with every update."""
    base_version: int = Field(..., ge=0, description="Version the editor loaded")
    base_snapshot: Dict[str, Any] = Field(
        default_factory=dict, description="Field values the editor loaded"
    )
    dirty_fields: Optional[List[str]] = Field(
        None, description="Fields the editor changed; defaults to every payload field"
    )
    resolve_mode: Literal["none", "merge"] = "none"

    def to_meta(self) -> UpdateMeta:
        return UpdateMeta(
            base_version=self.base_version,
            base_snapshot=dict(self.base_snapshot),
            dirty_fields=tuple(self.dirty_fields) if self.dirty_fields is not None else None,
            resolve_mode=ResolveMode(self.resolve_mode),
        )


class ChangeDetailSchema(BaseSchema):
    field: str
    label: str
    previous_value: Any = None
    current_value: Any = None


class ChangeLogEntry(BaseSchema):
    """One committed write of a versioned entity."""
    id: UUID
    entity_type: str
    entity_id: UUID
    version: int
    action: str
    actor_id: Optional[UUID] = None
    actor_name: Optional[str] = None
    actor_role: Optional[str] = None
    changes: List[ChangeDetailSchema] = Field(default_factory=list)
    created_at: datetime


# ============================================================================
# User schemas
# ============================================================================


class UserCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    role: str = Field("lawyer", max_length=50)


class User(UserCreate):
    id: UUID
    created_at: datetime


# ============================================================================
# Case schemas
# ============================================================================


class CaseFields(PayloadSchema):
    """Every editable case field, all optional."""
    case_type: Optional[str] = None
    case_level: Optional[str] = None
    status: Optional[str] = None
    closed_reason: Optional[str] = None
    void_reason: Optional[str] = None
    department: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    data_source: Optional[str] = None
    target_amount: Optional[Decimal] = None
    agency_fee_estimate: Optional[Decimal] = None
    sales_commission: Optional[Decimal] = None
    handling_fee: Optional[Decimal] = None
    has_contract: Optional[bool] = None
    contract_date: Optional[date] = None
    clue_date: Optional[date] = None
    entry_date: Optional[date] = None
    next_follow_up_at: Optional[datetime] = None
    assigned_sale_id: Optional[UUID] = None
    assigned_lawyer_id: Optional[UUID] = None
    assigned_assistant_id: Optional[UUID] = None
    remark: Optional[str] = None
    insurance_types: Optional[List[str]] = None
    participants: Optional[List[Dict[str, Any]]] = None
    hearings: Optional[List[Dict[str, Any]]] = None
    collections: Optional[List[Dict[str, Any]]] = None
    timeline: Optional[List[Dict[str, Any]]] = None


class CaseCreate(CaseFields):
    """Schema for opening a case."""
    case_type: str
    case_level: str
    status: str = "open"

    def to_values(self) -> Dict[str, Any]:
        # Defaults count as sent when opening a case
        return self.model_dump(mode="json")


class CaseUpdateRequest(BaseSchema):
    """Schema for updating a case."""
    payload: CaseFields
    meta: UpdateMetaSchema


class Case(BaseSchema):
    """Case response schema."""
    id: UUID
    version: int
    case_type: str
    case_level: str
    status: str
    closed_reason: Optional[str] = None
    void_reason: Optional[str] = None
    department: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    data_source: Optional[str] = None
    target_amount: Optional[str] = None
    agency_fee_estimate: Optional[str] = None
    sales_commission: Optional[str] = None
    handling_fee: Optional[str] = None
    has_contract: Optional[bool] = None
    contract_date: Optional[date] = None
    clue_date: Optional[date] = None
    entry_date: Optional[date] = None
    next_follow_up_at: Optional[datetime] = None
    assigned_sale_id: Optional[UUID] = None
    assigned_lawyer_id: Optional[UUID] = None
    assigned_assistant_id: Optional[UUID] = None
    remark: Optional[str] = None
    insurance_types: List[str] = Field(default_factory=list)
    participants: List[Dict[str, Any]] = Field(default_factory=list)
    hearings: List[Dict[str, Any]] = Field(default_factory=list)
    collections: List[Dict[str, Any]] = Field(default_factory=list)
    timeline: List[Dict[str, Any]] = Field(default_factory=list)
    updated_at: Optional[datetime] = None
    updated_by_id: Optional[UUID] = None

    @field_validator("insurance_types", "participants", "hearings", "collections", "timeline", mode="before")
    @classmethod
    def ensure_list(cls, v: Optional[List[Any]]) -> List[Any]:
        """Convert None to empty list for nullable array fields."""
        return v if v is not None else []


# ============================================================================
# Client schemas
# ============================================================================


class ClientFields(PayloadSchema):
    name: Optional[str] = None
    entity_type: Optional[str] = None
    id_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    remark: Optional[str] = None


class ClientCreate(ClientFields):
    name: str
    entity_type: str = "personal"

    def to_values(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ClientUpdateRequest(BaseSchema):
    payload: ClientFields
    meta: UpdateMetaSchema


class Client(BaseSchema):
    id: UUID
    version: int
    name: str
    entity_type: str
    id_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    remark: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by_id: Optional[UUID] = None
