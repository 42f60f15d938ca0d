"""
Graph API

FastAPI service for inspecting graphs and submitting runs.

HTTP Endpoints:
- GET  /                         - Health check
- GET  /health                   - Detailed health status
- GET  /graphs                   - List graph documents
- GET  /graphs/{name}            - Graph topology, contracts and execution order
- POST /graphs/{name}/runs       - Execute a graph
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from ..config import ConfigLoader, Settings
from ..dag.registry import NodeRegistry
from ..errors import CycleError, GraphConfigError
from ..runtime.coordinator import GraphCoordinator

logger = logging.getLogger(__name__)


class RunRequest(BaseModel):
    """Execution request"""
    inputs: dict[str, Any] = Field(default_factory=dict, description="Source node name -> input value")
    sinks: Optional[list[str]] = Field(default=None, description="Sink nodes (default: terminal nodes)")
    report: bool = Field(default=True, description="Include the per-node report")


class GraphSummary(BaseModel):
    """Graph listing entry"""
    name: str
    loaded: bool


def create_app(settings: Optional[Settings] = None, registry: Optional[NodeRegistry] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Runtime settings (default: from environment)
        registry: Node registry (default: built-in nodes configured from settings)
    """
    settings = settings or Settings.from_env()
    loader = ConfigLoader(settings.graph_dir)
    coordinators: dict[str, GraphCoordinator] = {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal registry
        logger.info("Starting Graph API...")
        if registry is None:
            from ..runtime.main import setup_node_registry
            registry = setup_node_registry(settings)
        logger.info(f"Graph directory: {settings.graph_dir}")
        yield
        coordinators.clear()
        logger.info("Graph API shutdown complete")

    app = FastAPI(
        title="nodeflow - Graph API",
        description="Execute typed node graphs",
        version="1.0.0",
        lifespan=lifespan,
    )

    def get_coordinator(name: str) -> GraphCoordinator:
        if name not in loader.list_graphs():
            raise HTTPException(status_code=404, detail=f"Unknown graph '{name}'")
        if name not in coordinators:
            try:
                coordinators[name] = GraphCoordinator.from_loader(
                    name, loader, registry, max_concurrency=settings.max_concurrency
                )
            except (GraphConfigError, CycleError) as e:
                logger.error(f"Failed to build graph '{name}': {e}")
                raise HTTPException(status_code=400, detail=e.to_dict())
        return coordinators[name]

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "running",
            "service": "graph-api",
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/health")
    async def health():
        """Detailed health status"""
        return {
            "status": "healthy",
            "service": "graph-api",
            "graphs_loaded": sorted(coordinators),
            "node_types": registry.list_types() if registry else [],
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/graphs")
    async def list_graphs() -> list[GraphSummary]:
        return [GraphSummary(name=name, loaded=name in coordinators) for name in loader.list_graphs()]

    @app.get("/graphs/{name}")
    async def get_graph(name: str):
        """
        Describe a graph.

        Raises:
            400: Invalid graph document
            404: Unknown graph
        """
        coordinator = get_coordinator(name)
        description = coordinator.graph.describe()
        description["order"] = list(coordinator.order)
        description["metrics"] = coordinator.get_metrics()
        return description

    @app.post("/graphs/{name}/runs")
    async def run_graph(name: str, request: RunRequest):
        """
        Execute a graph.

        Returns:
            Run result with every requested sink (output or error)

        Raises:
            400: Invalid graph or request (unknown sink, bad wiring, cycle)
            404: Unknown graph
        """
        coordinator = get_coordinator(name)
        try:
            result = await coordinator.run(request.inputs, request.sinks)
        except (GraphConfigError, CycleError) as e:
            raise HTTPException(status_code=400, detail=e.to_dict())

        logger.info(f"Run {result.run_id} of '{name}' finished (ok={result.ok})")
        return result.to_dict(include_report=request.report)

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(f"Starting Graph API on {settings.host}:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
