"""
FastAPI Routes for the Workflow Engine.

Provides REST API endpoints for:
- Validating serialized workflows
- Running serialized workflows
- Listing registered node functions

Definitions received over HTTP are untrusted: function nodes must reference
registered functions, source text is always rejected.
"""

import logging
from typing import Dict

from fastapi import APIRouter, HTTPException

from .models import (
    ErrorResponse,
    FunctionInfo,
    ListFunctionsResponse,
    RunWorkflowRequest,
    RunWorkflowResponse,
    SerializedWorkflowResponse,
    ValidateWorkflowResponse,
    WorkflowDefinitionRequest,
)
from ..core.errors import DeserializationError, ExecutionFailure
from ..core.functions import get_global_registry
from ..core.workflow import Workflow

logger = logging.getLogger(__name__)

# Create routers
router = APIRouter(prefix="/workflows", tags=["Workflows"])
function_router = APIRouter(prefix="/functions", tags=["Functions"])


def load_definition(definition: str) -> Workflow:
    """Load a definition with source reconstruction disabled."""
    try:
        return Workflow.load(definition, allow_source=False)
    except DeserializationError as e:
        logger.info("Rejected workflow definition: %s", e)
        raise HTTPException(status_code=400, detail=str(e))


# ============================================================================
# Workflow Endpoints
# ============================================================================


@router.get(
    "/empty",
    response_model=SerializedWorkflowResponse,
    summary="Empty workflow",
    description="Serialized form of the canonical empty workflow.",
)
async def empty_workflow() -> SerializedWorkflowResponse:
    return SerializedWorkflowResponse(definition=Workflow.empty().serialize())


@router.post(
    "/validate",
    response_model=ValidateWorkflowResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Validate a workflow",
    description="Load a serialized workflow and return its normalized record.",
)
async def validate_workflow(
    request: WorkflowDefinitionRequest,
) -> ValidateWorkflowResponse:
    workflow = load_definition(request.definition)
    return ValidateWorkflowResponse(valid=True, record=workflow.dump())


@router.post(
    "/run",
    response_model=RunWorkflowResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Run a workflow",
    description="Load a serialized workflow and run it against the given context.",
)
async def run_workflow(request: RunWorkflowRequest) -> RunWorkflowResponse:
    """
    Execute a workflow.

    Node failures do not produce an HTTP error: the response carries
    status "failed" and the context as it was when the run stopped.
    """
    workflow = load_definition(request.definition)
    context = dict(request.context)
    try:
        await workflow.run(context)
    except ExecutionFailure as e:
        logger.info("Workflow %s failed at node %s: %s", workflow.root.id, e.node_id, e)
        return RunWorkflowResponse(
            status="failed", context=context, error=str(e), failed_node=e.node_id
        )
    return RunWorkflowResponse(status="completed", context=context)


# ============================================================================
# Function Endpoints
# ============================================================================


@function_router.get(
    "/list",
    response_model=ListFunctionsResponse,
    summary="List node functions",
    description="Get a list of all registered node functions.",
)
async def list_functions() -> ListFunctionsResponse:
    registry = get_global_registry()
    return ListFunctionsResponse(
        functions=[FunctionInfo(**f) for f in registry.list_functions()]
    )


@function_router.get(
    "/{name}",
    response_model=FunctionInfo,
    responses={404: {"model": ErrorResponse}},
    summary="Get a node function",
)
async def get_function(name: str) -> Dict[str, object]:
    registry = get_global_registry()
    for info in registry.list_functions():
        if info["name"] == name:
            return info
    raise HTTPException(status_code=404, detail=f"Function not found: {name}")
