"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
import logging

from fastapi import FastAPI

from hackathon_api.api.router import api_router
from hackathon_api.core.config import settings
from hackathon_api.core.exceptions import register_exception_handlers
from hackathon_api.core.logging import setup_logging
from hackathon_api.core.middleware import add_middlewares
from hackathon_api.infrastructure.db.bootstrap import ensure_defaults
from hackathon_api.infrastructure.db.store import build_store, store_ready
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashReceiver

_log = logging.getLogger("hackathon.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


# Startup
@app.on_event("startup")
def on_startup():
    if not settings.jwt_secret:
        _log.warning("JWT_SECRET no configurado; la emisión de tokens fallará")

    # Las pruebas pueden inyectar su propio store antes de arrancar
    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(settings)
    if getattr(app.state, "qstash", None) is None:
        app.state.qstash = QStashClient(
            token=settings.qstash_token,
            base_url=settings.qstash_url,
            timeout=settings.qstash_timeout_seconds,
        )
    if getattr(app.state, "qstash_receiver", None) is None:
        app.state.qstash_receiver = QStashReceiver(
            signing_keys=settings.qstash_signing_keys,
            clock_tolerance=settings.qstash_clock_tolerance_seconds,
        )

    if store_ready(app.state.store):
        ensure_defaults(app.state.store)
    else:
        _log.warning("Store no listo; omitiendo ensure_defaults()")


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
