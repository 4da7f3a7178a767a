from pydantic import AliasChoices, BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Generic, TypeVar
from datetime import datetime
from uuid import UUID

from contractflow.enums import ContractStatus, FieldType

T = TypeVar("T")


# ============= Envelope =============
class ApiResponse(BaseModel, Generic[T]):
    """Tagged success result; failures use the error envelope from exceptions.py."""
    success: bool = True
    data: T
    message: Optional[str] = None


# ============= Blueprint Schemas =============
class BlueprintFieldInput(BaseModel):
    type: FieldType
    label: str = Field(..., max_length=255)
    position_x: float = 0
    position_y: float = 0
    order: Optional[int] = None


class BlueprintCreate(BaseModel):
    name: str = Field(..., max_length=255, description="Blueprint name")
    description: Optional[str] = None
    fields: List[BlueprintFieldInput] = Field(default_factory=list)


class BlueprintUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    fields: Optional[List[BlueprintFieldInput]] = None


class BlueprintFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: FieldType
    label: str
    position_x: float
    position_y: float
    order: int


class BlueprintResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    fields: List[BlueprintFieldResponse]
    contract_count: int = 0
    is_locked: bool = False
    created_at: datetime
    updated_at: datetime


class FieldTypeInfo(BaseModel):
    type: FieldType
    label: str
    default_value: str


class DeleteResult(BaseModel):
    deleted: bool = True
    id: UUID


# ============= Contract Schemas =============
class ContractCreate(BaseModel):
    blueprint_id: UUID
    name: str = Field(..., max_length=255, description="Contract name")
    field_values: Optional[Dict[str, str]] = None


class ContractValuesUpdate(BaseModel):
    field_values: Dict[str, str] = Field(default_factory=dict)


class TransitionRequest(BaseModel):
    target_status: ContractStatus


class ContractFieldValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    blueprint_field_id: UUID
    label: str
    type: FieldType
    order: int
    value: str


class ContractResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    blueprint_id: UUID
    blueprint_name: Optional[str] = None
    status: ContractStatus
    # ORM objects expose the field-ordered list as ordered_field_values
    field_values: List[ContractFieldValueResponse] = Field(
        validation_alias=AliasChoices("ordered_field_values", "field_values")
    )
    is_editable: bool
    is_terminal: bool
    allowed_transitions: List[ContractStatus]
    version: int
    created_at: datetime
    updated_at: datetime


class TransitionOption(BaseModel):
    target: ContractStatus
    label: str
    variant: str


class AllowedTransitionsResponse(BaseModel):
    contract_id: UUID
    current_status: ContractStatus
    is_terminal: bool
    is_editable: bool
    allowed_transitions: List[ContractStatus]
    options: List[TransitionOption]


class ContractStats(BaseModel):
    total: int
    active: int
    pending: int
    signed: int
    by_status: Dict[str, int]
    blueprints: int


class LifecycleDescription(BaseModel):
    initial_status: ContractStatus
    statuses: List[Dict[str, Any]]
