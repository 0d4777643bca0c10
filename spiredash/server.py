import ssl
import sys
from abc import abstractmethod
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.applications import AppType
from fastapi.responses import ORJSONResponse
from loguru import logger
from starlette.types import Lifespan

from spiredash.config import ServerConfig


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level)


class WebServer:
    """Async web server base using FastAPI."""

    def __init__(self, config: ServerConfig, lifespan: Optional[Lifespan[AppType]] = None, **app_kwargs):
        self.config = config
        self.app = FastAPI(
            debug=config.debug,
            default_response_class=ORJSONResponse,
            lifespan=lifespan,
            **app_kwargs,
        )
        self._setup_routes()

    @abstractmethod
    def _setup_routes(self):
        """
        Setup web routes.
        Example:
        self.app.add_api_route('/route', self.handle_route, methods=["GET"])
        """
        raise NotImplementedError()

    def uvicorn_options(self) -> Dict[str, Any]:
        """Listener options for uvicorn.run.

        A Unix socket wins over host/port. TLS is used when both a
        certificate and key are configured; ``require_tls`` turns a plain
        TCP listener into an error, and ``mtls_required`` adds client
        certificate verification against ``client_ca_path``.
        """
        config = self.config
        options: Dict[str, Any] = {"log_level": "debug" if config.debug else "info"}

        if config.uds_path:
            options["uds"] = str(config.uds_path)
            return options

        options["host"] = config.bind_address
        options["port"] = config.port

        if not (config.tls_cert_path and config.tls_key_path):
            if config.require_tls:
                raise ValueError("TLS certificate and key are required for TCP connections")
            return options

        options["ssl_certfile"] = str(config.tls_cert_path)
        options["ssl_keyfile"] = str(config.tls_key_path)
        if config.mtls_required:
            if not config.client_ca_path:
                raise ValueError("mTLS requires a client CA certificate (client_ca_path)")
            options["ssl_cert_reqs"] = ssl.CERT_REQUIRED
            options["ssl_ca_certs"] = str(config.client_ca_path)
        return options

    def run(self):
        """Run the web server."""
        options = self.uvicorn_options()

        if "uds" in options:
            logger.info("Starting server on Unix socket {}", options["uds"])
        else:
            scheme = "https" if "ssl_certfile" in options else "http"
            logger.info("Starting server on {}://{}:{}", scheme, options["host"], options["port"])
            if "ssl_ca_certs" in options:
                logger.info("Client certificates verified against {}", options["ssl_ca_certs"])

        uvicorn.run(self.app, **options)
