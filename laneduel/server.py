"""FastAPI relay that pairs a host with a guest and forwards their frames."""
from __future__ import annotations

import argparse
import logging
from typing import Dict

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from . import config
from .rooms import GUEST, HOST, RelayRoom, RoomError, RoomManager

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{config.GAME_NAME} relay", version="0.1.0")


async def get_manager() -> RoomManager:
    if not hasattr(app.state, "room_manager"):
        app.state.room_manager = RoomManager()
    return app.state.room_manager


@app.get("/health")
async def healthcheck(manager: RoomManager = Depends(get_manager)) -> Dict[str, object]:
    """Simple readiness probe."""

    return {"status": "ok", "rooms": len(manager.rooms)}


@app.get("/rooms/{room_id}")
async def room_status(room_id: str, manager: RoomManager = Depends(get_manager)) -> Dict[str, object]:
    room = manager.lookup(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="No offer found. Ask host to create room first.")
    return room.describe()


@app.websocket("/ws/{room_id}/host")
async def host_endpoint(
    websocket: WebSocket, room_id: str, manager: RoomManager = Depends(get_manager)
) -> None:
    await websocket.accept()
    try:
        room = await manager.open_room(room_id, websocket)
    except RoomError as exc:
        await websocket.close(code=exc.close_code, reason=str(exc))
        return
    await _pump(websocket, room, HOST, manager)


@app.websocket("/ws/{room_id}/guest")
async def guest_endpoint(
    websocket: WebSocket, room_id: str, manager: RoomManager = Depends(get_manager)
) -> None:
    await websocket.accept()
    try:
        room = await manager.join_room(room_id, websocket)
    except RoomError as exc:
        logger.info("Refused guest for room %s: %s", room_id, exc)
        await websocket.close(code=exc.close_code, reason=str(exc))
        return
    await _pump(websocket, room, GUEST, manager)


async def _pump(websocket: WebSocket, room: RelayRoom, side: str, manager: RoomManager) -> None:
    try:
        while True:
            text = await websocket.receive_text()
            await room.relay(side, text)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.leave(room, side)
        if (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        ):
            await websocket.close()


def main() -> None:
    import uvicorn

    parser = argparse.ArgumentParser(description=f"{config.GAME_NAME} relay server")
    parser.add_argument("--host", default=config.RELAY_HOST)
    parser.add_argument("--port", type=int, default=config.RELAY_PORT)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()


__all__ = ["app", "main"]
