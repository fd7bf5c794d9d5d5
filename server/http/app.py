from __future__ import annotations

import logging

from aiohttp import web

from config.http_server_config import (
    DEFAULT_MAX_REQUEST_BYTES,
    HttpServerConfig,
    resolve_http_server_config,
)
from config.storage_config import StorageConfig, resolve_storage_config
from server.blob_store import BlobStore, get_store
from server.chat_storage import ChatStorageService

logger = logging.getLogger("HiTekChat.HttpAPI")


def create_app(
    *,
    store: BlobStore | None = None,
    storage_config: StorageConfig | None = None,
    max_request_bytes: int | None = None,
) -> web.Application:
    config_max_bytes = max_request_bytes or DEFAULT_MAX_REQUEST_BYTES
    resolved_storage_config = storage_config or resolve_storage_config()
    resolved_store = store or get_store(resolved_storage_config)
    app = web.Application(client_max_size=config_max_bytes)
    app["require_user_id"] = resolved_storage_config.require_user_id
    app["chat_storage"] = ChatStorageService(resolved_store)
    logger.info(
        "Chat storage ready: store=%s backend=%s require_user_id=%s",
        resolved_store.name,
        resolved_storage_config.backend,
        resolved_storage_config.require_user_id,
    )
    from server.http.routes import register_routes

    register_routes(app)
    return app


def run_server(config: HttpServerConfig) -> None:
    app = create_app(max_request_bytes=config.max_request_bytes)
    web.run_app(app, host=config.host, port=config.port)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = resolve_http_server_config()
    run_server(config)
