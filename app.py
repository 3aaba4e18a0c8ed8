"""Main FastAPI application for the pluggable development server."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv('.env')

# Configure logging BEFORE importing any modules that use logger
log_level = os.getenv('LOG_LEVEL', 'INFO')
logging.basicConfig(
    level=getattr(logging, log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import after logging is configured
from fastapi import FastAPI, Request
from devserver import __version__
from devserver.dependencies import get_config, get_middleware, get_plugin_system
from devserver.routers import plugins_router
from devserver.services.middleware import RequestContext

# Create FastAPI app
app = FastAPI(
    title="devserver",
    description="Pluggable development server",
    version=__version__
)

app.include_router(plugins_router)  # /api/plugins, /api/services


@app.middleware("http")
async def plugin_middleware(request: Request, call_next):
    """Run the plugin middleware chain; fall through to the routes if nothing answered."""
    chain = getattr(app.state, "plugin_chain", None)
    if chain is None:
        return await call_next(request)

    ctx = RequestContext(request=request)

    async def downstream():
        ctx.response = await call_next(request)

    await chain(ctx, downstream)
    if ctx.response is None:
        ctx.response = await call_next(request)
    return ctx.response


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info("Starting devserver")
    logger.info(f"Working directory: {Path.cwd()}")

    config = get_config()
    plugin_system = get_plugin_system()
    await plugin_system.start()

    # handlers are created once, after every plugin registered its middleware
    app.state.plugin_chain = get_middleware().compose(config)
    logger.info(f"Middleware chain: {get_middleware().names()}")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event."""
    logger.info("Shutting down devserver")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", str(get_config().get("port", 8000))))
    uvicorn.run("app:app", host="0.0.0.0", port=port, reload=True)
