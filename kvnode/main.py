"""Entry point for a store node: HTTP app, background services, shutdown."""

import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from common.logging_config import get_logger, setup_logging, shutdown_logging
from kvnode.config import load_config
from kvnode.exceptions import (
    InvalidConfigError,
    KeyNotFoundError,
    KVNodeError,
    StoreSerializationError
)
from kvnode.node import Node
from kvnode.routes import peer_router, store_router
from kvnode.schemas import ErrorResponse

logger = get_logger(__name__)


def create_app(node: Optional[Node] = None, start_background: bool = True) -> FastAPI:
    """
    Build the FastAPI application serving a node.

    Args:
        node: Node to serve; attached to app.state.node
        start_background: Whether app startup should start the node's probe loop

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        node = app.state.node
        if node is not None and start_background:
            await node.start()
        try:
            yield
        finally:
            if node is not None and start_background:
                logger.info("Node shutting down...")
                await node.stop()

    app = FastAPI(
        title="KV Node",
        description="Replicated key/value store node with liveness probing and anti-entropy",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.node = node

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.debug(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.debug(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(
            f"Invalid request body: {exc.errors()} [request_id={request_id}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(detail="Invalid request body", code="INVALID_REQUEST").model_dump()
        )

    @app.exception_handler(KeyNotFoundError)
    async def key_not_found_handler(request: Request, exc: KeyNotFoundError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.info(
            f"Key not found: {exc} [request_id={request_id}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(detail="Key not found", code="KEY_NOT_FOUND").model_dump()
        )

    @app.exception_handler(StoreSerializationError)
    async def serialization_error_handler(request: Request, exc: StoreSerializationError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Store serialization error: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(detail="Failed to compute hash", code="SERIALIZATION_ERROR").model_dump()
        )

    @app.exception_handler(KVNodeError)
    async def node_error_handler(request: Request, exc: KVNodeError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Node error: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(detail=str(exc), code="INTERNAL_ERROR").model_dump()
        )

    app.include_router(peer_router)
    app.include_router(store_router)

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.
        Returns 200 if the process is serving requests.
        """
        return {"status": "healthy", "service": "kvnode"}

    @app.get("/metrics")
    async def metrics_endpoint():
        """Prometheus exposition of the node's counters."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Load configuration, then serve the node with uvicorn until interrupted.
    """
    try:
        config = load_config(argv)
    except InvalidConfigError as e:
        setup_logging('kvnode')
        logger.critical(f"Invalid configuration: {e}")
        shutdown_logging()
        sys.exit(1)

    setup_logging('kvnode', log_level=config.log_level, node_address=config.advertise_addr)
    logger.info(
        f"Configuration loaded: port={config.port}, peers={list(config.peers)}, "
        f"pingfreq={config.ping_frequency}s, timeout={config.ping_timeout}s"
    )

    node = Node(config)
    app = create_app(node)

    try:
        uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
    finally:
        logger.info("Node process exiting")
        shutdown_logging()


if __name__ == "__main__":
    main()
