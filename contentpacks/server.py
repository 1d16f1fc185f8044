"""
Content Delivery Service application factory

Builds the FastAPI app: package routes, overview page, optional static
content, and the startup scan that deploys archives found on disk.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api import router as packages_router
from .bootstrap import bootstrap
from .config import ContentPathNotConfigured, LocalConfig, get_local_config
from .overview import router as overview_router
from .store import PackageStore
from .upload import UploadPipeline

logger = logging.getLogger(__name__)


def create_app(config: Optional[LocalConfig] = None) -> FastAPI:
    """
    Create the service app.

    Without a usable content path the app still starts; package routes
    then answer 503.
    """
    config = config or get_local_config()
    base_path = config.get_base_path()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = app.state.package_store
        if store is not None:
            app.state.bootstrap_report = await run_in_threadpool(
                bootstrap, store, validate=config.should_validate_on_startup()
            )
        logger.debug(
            "Content Delivery Service has been initialized with the following configuration: "
            f"{config.config}"
        )
        yield
        logger.debug("Content Delivery Service has been stopped.")

    app = FastAPI(
        title="Content Delivery Service",
        description="Stores, unpacks and serves content packages",
        version=__version__,
        lifespan=lifespan
    )

    app.state.base_path = base_path
    app.state.package_store = None
    app.state.upload_pipeline = None
    app.state.bootstrap_report = None

    try:
        store = PackageStore(config.require_content_path())
        app.state.package_store = store
        app.state.upload_pipeline = UploadPipeline(store)
    except ContentPathNotConfigured as e:
        logger.warning(f"{e} Local files will not be delivered.")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Package independent content, mounted before the catch-all package routes
    static_path = config.get_static_content_path()
    if static_path:
        app.mount(f"{base_path}/static", StaticFiles(directory=static_path), name="static")
    else:
        logger.warning("No path for static content configured.")

    app.include_router(overview_router, prefix=base_path)
    app.include_router(packages_router, prefix=base_path)

    return app
