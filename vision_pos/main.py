"""Main entry point for the Vision POS system"""
import argparse
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vision_pos import __version__
from vision_pos.api.routes import router
from vision_pos.session import PosSession, build_session
from vision_pos.utils.helpers import load_config
from vision_pos.utils.logger import logger, setup_logger


DEFAULT_CONFIG_PATH = "config/config.yaml"


def create_app(config: Optional[Dict[str, Any]] = None, session: Optional[PosSession] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    if config is None:
        config = load_config(DEFAULT_CONFIG_PATH)

    setup_logger(config.get("logging", {}))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle"""
        logger.info("Starting Vision POS...")

        pos_session = session or build_session(config)
        app.state.session = pos_session

        status = await pos_session.load_model()
        if status["loaded"]:
            logger.info("AI Model ready")
        else:
            logger.warning(f"AI Model not loaded: {status['error']}")

        logger.info("System started successfully!")

        yield

        # Cleanup
        logger.info("Shutting down...")
        await pos_session.close()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="Vision POS API",
        description="Point of sale with camera-based product classification",
        version=__version__,
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("api", {}).get("cors_origins", ["http://localhost:8000"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(router, prefix="/api")

    return app


def main():
    parser = argparse.ArgumentParser(description="Run the Vision POS server")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    args = parser.parse_args()

    config = load_config(args.config)
    api_config = config.get("api", {})
    uvicorn.run(
        create_app(config),
        host=api_config.get("host", "127.0.0.1"),
        port=api_config.get("port", 8000)
    )


if __name__ == "__main__":
    main()
