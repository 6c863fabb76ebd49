"""FastAPI route handlers."""

from fastapi import Request, Response


async def handle_request(request: Request) -> Response:
    """Hand every inbound request to the dispatcher built at startup."""
    dispatcher = request.app.state.dispatcher
    return await dispatcher.dispatch(request)
