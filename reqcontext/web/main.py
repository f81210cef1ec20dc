"""
Request context service - FastAPI application assembly

Wires configuration, logging, the RequestContext middleware, exception
handlers and the introspection endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException

from reqcontext import __version__
from reqcontext.common.core.logging_config import setup_logging
from reqcontext.common.core.request_context import get_request_id

from .api.deps import RequestContextDep, TrustConfigDep
from .config import HttpConfig, config
from .core.exceptions import ClientIpUnavailableError
from .exceptions import register_exception_handlers
from .middleware import request_context_middleware
from .models import RequestInfo
from .services.context_factory import RequestContextFactory

logger = logging.getLogger("reqcontext.main")


def create_app(app_config: Optional[HttpConfig] = None) -> FastAPI:
    """Build the application; ``app_config`` defaults to the environment config."""
    app_config = app_config or config
    setup_logging(app_config.LOG_CONFIG_PATH, app_config.LOG_LEVEL)

    trust_config = app_config.trust_config()

    app = FastAPI(title="Request Context", version=__version__, root_path=app_config.root_path)
    app.state.config = app_config
    app.state.trust_config = trust_config
    app.state.context_factory = RequestContextFactory(trust_config)

    app.middleware("http")(request_context_middleware)
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.api_route("/_request", methods=["GET", "POST"], response_model=RequestInfo)
    async def request_info(ctx: RequestContextDep) -> RequestInfo:
        """Derived facts about the current request."""
        if not app_config.EXPOSE_REQUEST_INFO:
            raise HTTPException(status_code=404, detail="Not Found")

        try:
            client_ip = ctx.get_client_ip()
        except ClientIpUnavailableError:
            client_ip = None

        return RequestInfo(
            method=ctx.get_request_method(),
            url=ctx.get_current_url(),
            client_ip=client_ip,
            secure=ctx.is_request_secured(),
            host=ctx.get_host_name(),
            port=ctx.get_connection_port(),
            request_id=get_request_id(),
            query=ctx.query(),
            headers=ctx.header(),
        )

    @app.get("/_trust")
    async def trust_settings(trust: TrustConfigDep):
        """Configured trusted proxies and forwarded header names."""
        if not app_config.EXPOSE_REQUEST_INFO:
            raise HTTPException(status_code=404, detail="Not Found")
        return {
            "trusted_proxies": sorted(trust.trusted_proxies),
            "trusted_headers": trust.trusted_header_names(),
        }

    logger.info(
        "Request context layer initialized",
        extra={"trusted_proxies": sorted(trust_config.trusted_proxies)},
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, proxy_headers=False)
