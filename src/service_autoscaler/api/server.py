#!/usr/bin/env python3
"""
FastAPI server module for the read-only status API
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..core.control_loop import ControlLoop

logger = logging.getLogger(__name__)

SERVICE_NAME = "Service Autoscaler"


class APIServer:
    """FastAPI server exposing control loop status, metrics and history"""

    def __init__(self, control_loop: ControlLoop, settings: Settings):
        """
        Initialize API server

        Args:
            control_loop: Running control loop; its state backs every endpoint
            settings: Effective settings, served sanitized on /config
        """
        self.control_loop = control_loop
        self.state = control_loop.state
        self.settings = settings
        self.app = FastAPI(
            title="Service Autoscaler API",
            description="Status and scaling history of the service autoscaler",
            version=__version__
        )
        self._server: Optional[uvicorn.Server] = None
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes"""

        @self.app.get("/")
        async def root() -> Dict[str, Any]:
            """Root endpoint"""
            return {
                "service": SERVICE_NAME,
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

        # Plain def: replica counts hit the orchestrator and block
        @self.app.get("/health")
        def health_check():
            """Health check endpoint with per-service status"""
            status = self.control_loop.get_health_status()
            status_code = 200 if status.get("status") == "healthy" else 503
            return JSONResponse(content=status, status_code=status_code)

        @self.app.get("/metrics")
        async def get_metrics() -> Dict[str, Dict[str, float]]:
            """Latest collected metric snapshot"""
            return self.state.snapshot

        @self.app.get("/history")
        async def get_scaling_history(limit: Optional[int] = Query(None, ge=1)) -> List[Dict[str, Any]]:
            """Scaling actions, oldest first"""
            return [action.to_dict() for action in self.state.history(limit)]

        @self.app.get("/config")
        async def get_config() -> Dict[str, Any]:
            """Get current autoscaler configuration (sanitized)"""
            return self.settings.get_config_dict()

    def run(self, host: str = "0.0.0.0", port: int = 8081):
        """Run the API server; blocks until stop() is called"""
        logger.info(f"Starting API server on {host}:{port}")
        config = uvicorn.Config(self.app, host=host, port=port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._server.run()

    def stop(self):
        if self._server is not None:
            self._server.should_exit = True
