# pylint: disable=missing-function-docstring, invalid-name, broad-except, line-too-long
# pylint: disable=unused-argument
"""
Azure Function App for the Destiny 2 Manifest Browser.

Exposes HTTP-triggered Azure Functions for:
- Health checks and diagnostics
- Searching indexed manifest items
- Fetching full item definitions
- Resolving weapon option columns
- Rebuilding the manifest index
All endpoints return JSON responses suitable for the UI shell and API clients.
"""

import json
import logging
import os
import platform
import sys

import azure.functions as func
import psutil

from manifest_browser import ManifestBrowser
from manifest_index import ManifestLoadError

logging.getLogger().setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

app = func.FunctionApp()

browser = ManifestBrowser.instance()


def _json_response(payload, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(payload, indent=2), mimetype="application/json", status_code=status_code)


def _error_response(message: str, status_code: int) -> func.HttpResponse:
    return _json_response({"error": message}, status_code=status_code)


# ----------------------
# Route Handler Functions
# ----------------------


@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def healthcheck(req: func.HttpRequest) -> func.HttpResponse:
    """
    Health check endpoint.
    Returns process diagnostics including Python version, platform, CPU, memory, and manifest index status.

    Args:
        req (func.HttpRequest): The HTTP request object.
    Returns:
        func.HttpResponse: JSON response with diagnostics or error.
    """
    try:
        process = psutil.Process()
        mem_info = process.memory_info()
        diagnostics = {
            "status": "ok" if browser.index.is_loaded else "degraded",
            "python_version": sys.version,
            "platform": platform.platform(),
            "cpu_count": psutil.cpu_count(),
            "memory": {
                "rss": mem_info.rss,  # Resident Set Size in bytes
                "vms": mem_info.vms,  # Virtual Memory Size in bytes
            },
            "manifest": browser.index.snapshot.stats(),
            "env": {
                "LOG_LEVEL": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
                "MANIFEST_DB_PATH": os.getenv("MANIFEST_DB_PATH"),
            }
        }
        return _json_response(diagnostics)
    except Exception as e:
        return _json_response({"status": "error", "error": str(e)}, status_code=500)


# --- Item queries ---


@app.route(route="items", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def items(req: func.HttpRequest) -> func.HttpResponse:
    """
    Searches indexed items.
    Optional query params: q (name substring), itemType (default 3 = weapons, 'any' for all), limit, offset.

    Args:
        req (func.HttpRequest): The HTTP request object.
    Returns:
        func.HttpResponse: JSON response with {total, items}.
    """
    logging.info("[items] GET request received.")
    result = browser.search(req.params)
    logging.info("[items] Returning %d of %d matches.", len(result.items), result.total)
    return _json_response(result.model_dump())


@app.route(route="items/{hash}", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def item_detail(req: func.HttpRequest) -> func.HttpResponse:
    """
    Returns the full manifest definition for an indexed item.

    Args:
        req (func.HttpRequest): The HTTP request object. Requires the 'hash' route parameter.
    Returns:
        func.HttpResponse: JSON response with the item definition or error.
    """
    hash_val = req.route_params.get("hash")
    logging.info("[items/%s] GET request received.", hash_val)
    try:
        int(hash_val)
    except (TypeError, ValueError):
        return _error_response("'hash' must be an integer.", 400)
    item = browser.get_full(hash_val)
    if item is None:
        logging.error("[items/%s] Item not found in manifest index.", hash_val)
        return _error_response("Item not found in manifest", 404)
    return _json_response(item.definition)


@app.route(route="items/{hash}/options", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def item_options(req: func.HttpRequest) -> func.HttpResponse:
    """
    Returns the resolved option columns (Barrel, Magazine, Trait 1, Trait 2, Origin) for an item.

    Args:
        req (func.HttpRequest): The HTTP request object. Requires the 'hash' route parameter.
    Returns:
        func.HttpResponse: JSON response with the option columns or error.
    """
    hash_val = req.route_params.get("hash")
    logging.info("[items/%s/options] GET request received.", hash_val)
    try:
        int(hash_val)
    except (TypeError, ValueError):
        return _error_response("'hash' must be an integer.", 400)
    columns = browser.resolve_options(hash_val)
    if columns is None:
        return _error_response("Item not found in manifest", 404)
    return _json_response({"hash": int(hash_val) & 0xFFFFFFFF, "columns": [c.as_dict() for c in columns]})


# --- Manifest management ---


@app.route(route="manifest/reindex", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manifest_reindex(req: func.HttpRequest) -> func.HttpResponse:
    """
    Rebuilds the in-memory manifest index from the manifest database.

    Args:
        req (func.HttpRequest): The HTTP request object.
    Returns:
        func.HttpResponse: JSON response with the new index statistics, or 503 if the manifest cannot be read.
    """
    logging.info("[manifest/reindex] POST request received.")
    try:
        stats = browser.reindex()
    except ManifestLoadError as e:
        logging.error("[manifest/reindex] Reindex failed: %s", e)
        return _error_response(str(e), 503)
    logging.info("[manifest/reindex] Reindex complete: %d items.", stats["indexedItems"])
    return _json_response(stats)


@app.route(route="manifest/status", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def manifest_status(req: func.HttpRequest) -> func.HttpResponse:
    """
    Returns manifest index statistics and option resolver counters.

    Args:
        req (func.HttpRequest): The HTTP request object.
    Returns:
        func.HttpResponse: JSON response with status details.
    """
    return _json_response(browser.status())
