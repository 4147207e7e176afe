"""
FastAPI Main Application Entry Point.

Configures and runs the nodeflow workflow API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from starlette.responses import RedirectResponse

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

from .api.routes import router as workflow_router, function_router  # noqa: E402
from .core.functions import get_global_registry  # noqa: E402
from .workflows.geometry import (  # noqa: E402
    create_hypotenuse_workflow,
    register_geometry_functions,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Registers the sample node functions on startup.
    """
    logger = logging.getLogger("nodeflow")

    logger.info("Starting nodeflow...")

    register_geometry_functions()
    sample = create_hypotenuse_workflow()
    logger.info("Sample workflow: %s", sample.serialize())

    functions = get_global_registry().list_functions()
    logger.info(
        "Registered %s node functions: %s",
        len(functions),
        [f["name"] for f in functions],
    )

    yield

    logger.info("Shutting down nodeflow...")


app = FastAPI(
    title="nodeflow",
    description="""
A minimal workflow engine: trees of nodes that mutate a shared context.

## Features

- **Function nodes**: Python callables that read and modify the context
- **Sequential groups**: Run children in order, stop at the first failure
- **Parallel groups**: Run children concurrently and wait for all of them
- **Serialization**: Round-trip workflows through a compact JSON form

Workflows posted to this API may only reference registered node functions.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(workflow_router)
app.include_router(function_router)


@app.get("/", tags=["Health"])
async def root():
    """Redirect root to the interactive API docs."""
    return RedirectResponse(url="/docs")


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
