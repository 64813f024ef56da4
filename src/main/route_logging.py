from fastapi import FastAPI
from fastapi.routing import APIRoute

from loggers import get_logger

logger = get_logger(__name__)

DOCS_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"}


def log_routes_summary(application: FastAPI, include_debug_list: bool = False) -> None:
    """Log how many API routes are mounted, per method and per tag."""
    routes = [
        r
        for r in application.routes
        if isinstance(r, APIRoute) and r.path not in DOCS_PATHS
    ]

    by_method: dict[str, int] = {}
    by_tag: dict[str, int] = {}

    for r in routes:
        for m in r.methods or set():
            by_method[m] = by_method.get(m, 0) + 1
        for t in r.tags or ["<untagged>"]:
            by_tag[str(t)] = by_tag.get(str(t), 0) + 1

    logger.info(
        "API endpoints summary: total=%s methods=%s tags=%s",
        len(routes),
        by_method,
        by_tag,
    )

    if include_debug_list:
        for r in sorted(routes, key=lambda x: (x.path, sorted(x.methods or []))):
            logger.debug("Route: %s %s -> %s", ",".join(sorted(r.methods or [])), r.path, r.name)
