from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    select,
)
from sqlalchemy.orm import column_property, relationship
from datetime import datetime
from typing import Optional
import uuid

from contractflow.db import Base
from contractflow.enums import ContractStatus, FieldType, enum_values
from contractflow.lifecycle import state_machine


class BlueprintField(Base):
    __tablename__ = "blueprint_fields"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    blueprint_id = Column(Uuid, ForeignKey("blueprints.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(FieldType, values_callable=enum_values, name="fieldtype"), nullable=False)
    label = Column(String(255), nullable=False)
    position_x = Column(Float, default=0, nullable=False)
    position_y = Column(Float, default=0, nullable=False)
    order = Column("sort_order", Integer, default=0, nullable=False)
    # Caller-supplied position; breaks ties between equal `order` values
    seq = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    blueprint = relationship("Blueprint", back_populates="fields")


class Blueprint(Base):
    __tablename__ = "blueprints"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    fields = relationship(
        "BlueprintField",
        back_populates="blueprint",
        cascade="all, delete-orphan",
        order_by=[BlueprintField.order, BlueprintField.seq],
    )

    @property
    def is_locked(self) -> bool:
        """Field schema is frozen once any contract references this blueprint."""
        return bool(self.contract_count)


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    blueprint_id = Column(Uuid, ForeignKey("blueprints.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(
        Enum(ContractStatus, values_callable=enum_values, name="contractstatus"),
        default=ContractStatus.CREATED,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    blueprint = relationship("Blueprint")
    field_values = relationship(
        "ContractFieldValue",
        back_populates="contract",
        cascade="all, delete-orphan",
    )

    @property
    def blueprint_name(self) -> Optional[str]:
        return self.blueprint.name if self.blueprint else None

    @property
    def ordered_field_values(self) -> list:
        return sorted(
            self.field_values,
            key=lambda fv: (fv.field.order, fv.field.seq),
        )

    @property
    def values_by_field_id(self) -> dict:
        return {fv.blueprint_field_id: fv for fv in self.field_values}

    @property
    def is_editable(self) -> bool:
        return state_machine.is_editable(self.status)

    @property
    def is_terminal(self) -> bool:
        return state_machine.is_terminal_state(self.status)

    @property
    def allowed_transitions(self) -> list:
        return list(state_machine.get_allowed_transitions(self.status))


class ContractFieldValue(Base):
    __tablename__ = "contract_field_values"
    __table_args__ = (
        UniqueConstraint("contract_id", "blueprint_field_id", name="uq_contract_field_value"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_id = Column(Uuid, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    blueprint_field_id = Column(Uuid, ForeignKey("blueprint_fields.id"), nullable=False)
    value = Column(Text, default="", nullable=False)

    contract = relationship("Contract", back_populates="field_values")
    field = relationship("BlueprintField", lazy="joined")

    @property
    def label(self) -> str:
        return self.field.label

    @property
    def type(self) -> FieldType:
        return self.field.type

    @property
    def order(self) -> int:
        return self.field.order


Blueprint.contract_count = column_property(
    select(func.count(Contract.id))
    .where(Contract.blueprint_id == Blueprint.id)
    .correlate_except(Contract)
    .scalar_subquery()
)
