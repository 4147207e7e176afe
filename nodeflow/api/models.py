"""
Pydantic models for API requests and responses.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Workflow Models
# ============================================================================


class WorkflowDefinitionRequest(BaseModel):
    """Request body carrying a serialized workflow."""

    definition: str = Field(..., description="Serialized workflow JSON text")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "definition": '{"id":"root","name":"sequential_root",'
                    '"type":"SequentialGroup","children":[]}'
                }
            ]
        }
    }


class RunWorkflowRequest(WorkflowDefinitionRequest):
    """Request body for running a serialized workflow."""

    context: Dict[str, Any] = Field(
        default_factory=dict, description="Initial context values"
    )


class RunWorkflowResponse(BaseModel):
    """Response from running a workflow."""

    status: str = Field(..., description="completed or failed")
    context: Dict[str, Any] = Field(..., description="Context after the run")
    error: Optional[str] = Field(default=None, description="Failure message")
    failed_node: Optional[str] = Field(
        default=None, description="Id of the node that reported the failure"
    )


class ValidateWorkflowResponse(BaseModel):
    """Response from validating a workflow definition."""

    valid: bool
    record: Dict[str, Any] = Field(..., description="Normalized root record")


class SerializedWorkflowResponse(BaseModel):
    """A serialized workflow."""

    definition: str


# ============================================================================
# Function Models
# ============================================================================


class FunctionInfo(BaseModel):
    """Information about a registered node function."""

    name: str
    description: str
    is_async: bool


class ListFunctionsResponse(BaseModel):
    """Response listing registered node functions."""

    functions: List[FunctionInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
