"""Health check endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Report whether the extension is connected and a task is running."""
    bridge = request.app.state.bridge
    return JSONResponse(
        {
            "status": "ok",
            "extension_connected": bridge.is_connected,
            "call_in_progress": bridge.has_pending_call,
        }
    )


health_routes = [
    Route("/health", health_check, methods=["GET"]),
]
