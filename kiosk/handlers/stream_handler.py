"""
handlers/stream_handler.py – StreamHandler class.
Responsibility: WebSocket push of status writes and of a session's flow state.
"""
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from ..core.sessions import SessionRegistry
from ..core.status import StatusChannel

logger = logging.getLogger(__name__)


class StreamHandler:
    """Handles WS /ws/status and WS /ws/flow/{session_id}."""

    def __init__(self, sessions: SessionRegistry, channel: StatusChannel) -> None:
        self._sessions = sessions
        self._channel = channel

    # ── WebSocket: status channel ─────────────────────────────────────────────

    async def handle_status_ws(self, websocket: WebSocket) -> None:
        """Send the current record, then every write after it."""
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self._channel.subscribe(queue.put_nowait)
        try:
            await websocket.send_json((await self._channel.read()).model_dump())
            while True:
                record = await queue.get()
                await websocket.send_json(record.model_dump())
        except WebSocketDisconnect:
            logger.info("Status WebSocket disconnected")
        except Exception as e:
            logger.error("Status WebSocket error: %s", e)
            await self._safe_send_error(websocket, str(e))
        finally:
            subscription.close()

    # ── WebSocket: flow state ─────────────────────────────────────────────────

    async def handle_flow_ws(self, websocket: WebSocket, session_id: str) -> None:
        """Send the mounted screen's view on connect and after every transition."""
        await websocket.accept()
        try:
            flow = self._sessions.get(session_id).flow
            if flow is None:
                await websocket.send_json({"error": "No screen open"})
                await websocket.close()
                return
            queue: asyncio.Queue = asyncio.Queue()
            remove = flow.add_listener(queue.put_nowait)
            try:
                await websocket.send_json({"flow": flow.name, **flow.view().model_dump(mode="json")})
                while flow.mounted:
                    view = await queue.get()
                    if view is None:
                        break
                    await websocket.send_json({"flow": flow.name, **view.model_dump(mode="json")})
            finally:
                remove()
            await websocket.send_json({"done": True, "flow": flow.name})
        except KeyError as e:
            await self._safe_send_error(websocket, str(e))
        except WebSocketDisconnect:
            logger.info("Flow WebSocket disconnected (%s)", session_id)
        except Exception as e:
            logger.error("Flow WebSocket error: %s", e)
            await self._safe_send_error(websocket, str(e))

    @staticmethod
    async def _safe_send_error(ws: WebSocket, msg: str) -> None:
        try:
            await ws.send_json({"error": msg})
        except Exception:
            pass
