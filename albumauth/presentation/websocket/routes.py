import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...core.container import ApplicationContainer
from ...domain.models import AuthState
from ...services.state_feed import Subscription

router = APIRouter()

logger = logging.getLogger(__name__)


@router.websocket("/ws/auth-state")
async def websocket_auth_state(websocket: WebSocket) -> None:
    container: ApplicationContainer = getattr(websocket.app.state, "container", None)  # type: ignore[attr-defined]
    if not container:
        logger.error("Application container not initialised for websocket connection.")
        await websocket.close(code=1011)
        return

    await websocket.accept()
    subscription = container.auth_service.state_feed.subscribe()
    forward = asyncio.create_task(_forward_states(websocket, subscription))
    logger.debug("Auth state subscriber connected.")
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Unexpected WebSocket error")
    finally:
        await _stop_forwarding(forward, subscription)
        logger.debug("Auth state subscriber disconnected.")


async def _forward_states(websocket: WebSocket, subscription: Subscription[AuthState]) -> None:
    async for state in subscription:
        await websocket.send_json({"type": "auth_state", "data": state.to_dict()})


async def _stop_forwarding(forward: "asyncio.Task[None]", subscription: Subscription[AuthState]) -> None:
    subscription.close()
    forward.cancel()
    (outcome,) = await asyncio.gather(forward, return_exceptions=True)
    if isinstance(outcome, Exception):
        logger.error("Failed to forward auth state: %s", outcome, exc_info=outcome)
