from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from contractflow.db import get_db
from contractflow.enums import FieldType
from contractflow.lifecycle.field_values import default_value
from contractflow.rate_limit import limiter, API_RATE_LIMIT
from contractflow.schemas import (
    ApiResponse,
    BlueprintCreate,
    BlueprintResponse,
    BlueprintUpdate,
    DeleteResult,
    FieldTypeInfo,
)
from contractflow.services import blueprint_service

router = APIRouter(prefix="/blueprints", tags=["blueprints"])

FIELD_TYPE_LABELS = {
    FieldType.TEXT: "Text",
    FieldType.DATE: "Date",
    FieldType.SIGNATURE: "Signature",
    FieldType.CHECKBOX: "Checkbox",
}


@router.get("", response_model=ApiResponse[List[BlueprintResponse]])
def list_blueprints(db: Session = Depends(get_db)):
    """List all blueprints, newest first"""
    blueprints = blueprint_service.list_blueprints(db)
    return ApiResponse(data=[BlueprintResponse.model_validate(b) for b in blueprints])


@router.post("", response_model=ApiResponse[BlueprintResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(API_RATE_LIMIT)
def create_blueprint(
    request: Request,
    data: BlueprintCreate,
    db: Session = Depends(get_db)
):
    """Create a blueprint with at least one field"""
    blueprint = blueprint_service.create_blueprint(db, data)
    return ApiResponse(data=BlueprintResponse.model_validate(blueprint))


@router.get("/field-types", response_model=ApiResponse[List[FieldTypeInfo]])
def list_field_types():
    """Field types a blueprint field may use"""
    return ApiResponse(data=[
        FieldTypeInfo(type=field_type, label=FIELD_TYPE_LABELS[field_type], default_value=default_value(field_type))
        for field_type in FieldType
    ])


@router.get("/{blueprint_id}", response_model=ApiResponse[BlueprintResponse])
def get_blueprint(blueprint_id: UUID, db: Session = Depends(get_db)):
    blueprint = blueprint_service.get_blueprint(db, blueprint_id)
    return ApiResponse(data=BlueprintResponse.model_validate(blueprint))


@router.put("/{blueprint_id}", response_model=ApiResponse[BlueprintResponse])
@limiter.limit(API_RATE_LIMIT)
def update_blueprint(
    request: Request,
    blueprint_id: UUID,
    data: BlueprintUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a blueprint.
    - name/description can always change
    - fields replaces the whole field list, refused once contracts exist
    """
    blueprint = blueprint_service.update_blueprint(db, blueprint_id, data)
    return ApiResponse(data=BlueprintResponse.model_validate(blueprint))


@router.delete("/{blueprint_id}", response_model=ApiResponse[DeleteResult])
@limiter.limit(API_RATE_LIMIT)
def delete_blueprint(request: Request, blueprint_id: UUID, db: Session = Depends(get_db)):
    """Delete a blueprint that no contract references"""
    blueprint_service.delete_blueprint(db, blueprint_id)
    return ApiResponse(data=DeleteResult(id=blueprint_id))
