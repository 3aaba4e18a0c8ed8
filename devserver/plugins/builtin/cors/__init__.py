"""Built-in CORS plugin.

Reads the host ``cors`` option: ``true`` allows every origin, an object may
set ``origin``, ``methods``, ``headers`` and ``credentials``, ``false``
disables the plugin.
"""

import logging

from starlette.responses import Response

logger = logging.getLogger("plugin.cors")

DEFAULT_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"

priority = 100
watches = ["cors"]


def _cors_headers(options, request_origin):
    if not isinstance(options, dict):
        options = {}

    origin = options.get("origin", "*")
    if origin == "*" and options.get("credentials") and request_origin:
        # browsers reject "*" together with credentials
        origin = request_origin

    headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": options.get("methods", DEFAULT_METHODS),
    }
    if options.get("headers"):
        headers["Access-Control-Allow-Headers"] = options["headers"]
    if options.get("credentials"):
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


async def on_route(ctx, call_next, config, logger):
    options = config.get("cors")
    if not options:
        return await call_next()

    request = ctx.request
    headers = _cors_headers(options, request.headers.get("origin"))

    # preflight
    if request.method == "OPTIONS" and request.headers.get("access-control-request-method"):
        requested = request.headers.get("access-control-request-headers")
        if requested and "Access-Control-Allow-Headers" not in headers:
            headers["Access-Control-Allow-Headers"] = requested
        ctx.response = Response(status_code=204, headers=headers)
        return

    await call_next()
    if ctx.response is not None:
        for key, value in headers.items():
            ctx.response.headers.setdefault(key, value)


def on_option_change(keys, prev_config, config):
    logger.info(f"cors option changed: {config.get('cors')!r}")


hooks = {
    "on_route": on_route,
    "on_option_change": on_option_change,
}
