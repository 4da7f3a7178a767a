from fastapi import APIRouter

from contractflow.lifecycle.state_machine import describe_lifecycle
from contractflow.schemas import ApiResponse, LifecycleDescription

router = APIRouter(prefix="/lifecycle", tags=["lifecycle"])


@router.get("", response_model=ApiResponse[LifecycleDescription])
def get_lifecycle():
    """Status graph: labels, terminal/editable flags and allowed transitions per status"""
    return ApiResponse(data=LifecycleDescription(**describe_lifecycle()))
