"""FastAPI routes for the POS dashboard"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from vision_pos import __version__
from vision_pos.errors import SessionError
from vision_pos.pos.views import render_detections
from vision_pos.session import PosSession
from vision_pos.utils.helpers import amount_to_json
from vision_pos.utils.logger import logger

router = APIRouter()


class ContinuousScanRequest(BaseModel):
    interval_ms: Optional[int] = Field(None, gt=0)


def get_session(request: Request) -> PosSession:
    """Session stored on the app by the lifespan handler"""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="System not initialized")
    return session


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": __version__}


@router.get("/products")
async def list_products(session: PosSession = Depends(get_session)):
    return {
        "products": [
            {
                "id": p.id,
                "namePrimary": p.display_names.primary,
                "nameSecondary": p.display_names.secondary,
                "price": amount_to_json(p.price),
                "classifierLabel": p.classifier_label
            }
            for p in session.catalog.products()
        ]
    }


@router.get("/model")
async def get_model_status(session: PosSession = Depends(get_session)):
    return session.model_status()


@router.post("/model/load")
async def load_model(session: PosSession = Depends(get_session)):
    """Explicit (re)load after a failure"""
    status = await session.load_model()
    if status["error"]:
        raise HTTPException(status_code=503, detail=f"AI Model Error: {status['error']}")
    return status


@router.post("/camera/start")
async def start_camera(session: PosSession = Depends(get_session)):
    result = await session.start_camera()
    if not result.get("success"):
        raise HTTPException(status_code=503, detail=result)
    return result


@router.post("/camera/stop")
async def stop_camera(session: PosSession = Depends(get_session)):
    return await session.stop_camera()


@router.get("/camera/frame")
async def get_camera_frame(session: PosSession = Depends(get_session)):
    """Latest frame with detections drawn, as base64"""
    frame_base64 = session.annotated_frame()
    if not frame_base64:
        raise HTTPException(status_code=404, detail="No frame available")
    return {"frame": frame_base64}


@router.post("/scan")
async def scan(session: PosSession = Depends(get_session)):
    try:
        return await session.scan()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/scan/continuous")
async def start_continuous_scan(body: Optional[ContinuousScanRequest] = None,
                                session: PosSession = Depends(get_session)):
    try:
        return session.start_continuous_scan(body.interval_ms if body else None)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/scan/continuous")
async def stop_continuous_scan(session: PosSession = Depends(get_session)):
    return session.stop_continuous_scan()


@router.get("/detections")
async def get_detections(session: PosSession = Depends(get_session)):
    return render_detections(session.current_detections, session.currency)


@router.post("/detections/{index}/cart")
async def add_detected_to_cart(index: int, session: PosSession = Depends(get_session)):
    item = session.add_detected_to_cart(index)
    if item is None:
        raise HTTPException(status_code=404, detail="Detection not found")
    return item


@router.post("/detections/{index}/export")
async def export_detection(index: int, session: PosSession = Depends(get_session)):
    result = await session.export_detection(index)
    if result is None:
        raise HTTPException(status_code=404, detail="Detection not found")
    return result


@router.get("/cart")
async def get_cart(session: PosSession = Depends(get_session)):
    return session.snapshot()["cart"]


@router.delete("/cart/items/{item_id}")
async def remove_cart_item(item_id: int, session: PosSession = Depends(get_session)):
    removed = session.remove_item(item_id)
    if removed is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return removed


@router.delete("/cart")
async def clear_cart(session: PosSession = Depends(get_session)):
    session.clear_cart()
    return session.snapshot()["cart"]


@router.post("/orders")
async def complete_order(session: PosSession = Depends(get_session)):
    result = await session.complete_order()
    if not result["success"]:
        status_code = 409 if result["error"] == "Cart is empty" else 500
        raise HTTPException(status_code=status_code, detail=f"Export failed: {result['error']}")
    return result


@router.get("/stats")
async def get_stats(session: PosSession = Depends(get_session)):
    return session.snapshot()["stats"]


@router.delete("/stats")
async def reset_stats(session: PosSession = Depends(get_session)):
    return session.reset_stats()


@router.post("/export")
async def export_all(session: PosSession = Depends(get_session)):
    result = await session.export_all()
    if not result["success"]:
        status_code = 409 if result["error"] == "No orders to export yet" else 500
        raise HTTPException(status_code=status_code, detail=f"Export failed: {result['error']}")
    return result


@router.get("/dashboard")
async def get_dashboard(session: PosSession = Depends(get_session)):
    """Everything the dashboard renders, in one call"""
    return session.snapshot()


@router.websocket("/ws/detections")
async def websocket_detections(websocket: WebSocket):
    """WebSocket endpoint for live detection updates"""
    await websocket.accept()

    session = getattr(websocket.app.state, "session", None)
    if session is None:
        await websocket.close(code=1011, reason="System not initialized")
        return

    logger.info("Detections WebSocket connected")

    try:
        while True:
            await websocket.send_json({
                "type": "detections",
                "continuousScan": session.poller.is_running,
                **render_detections(session.current_detections, session.currency)
            })

            # Incoming messages are ignored; receiving surfaces the disconnect
            try:
                await asyncio.wait_for(websocket.receive_text(), timeout=session.poller.interval_ms / 1000)
            except asyncio.TimeoutError:
                pass

    except WebSocketDisconnect:
        logger.info("Detections WebSocket disconnected")
    except Exception as e:
        logger.error(f"Detections WebSocket error: {e}")
