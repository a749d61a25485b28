from __future__ import annotations

import io
import json
import logging
import time

import numpy as np
import soundfile as sf
import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from tone_finder import __version__
from tone_finder.analyzer import AnalyzerConfig, FrequencyAnalyzer
from tone_finder.web.schemas import (
    AnalyzeResponse,
    ErrorEvent,
    InitMessage,
    StatusEvent,
    TransportPingMessage,
)
from tone_finder.web.session import RealtimeSession, SessionManager, analyze_blocks, dominant_result

logger = logging.getLogger(__name__)

app = FastAPI(title="Tone Finder", version=__version__)
sessions = SessionManager()


@app.get("/api/health")
async def health() -> dict[str, object]:
    return {
        "status": "ok",
        "version": __version__,
        "activeSessions": sessions.active_count,
    }


@app.post("/api/analyze")
async def analyze_upload(
    audio: UploadFile = File(...),
    block_size: int = Form(4096, alias="blockSize"),
) -> dict[str, object]:
    if block_size < 64 or block_size > 65_536:
        raise HTTPException(status_code=422, detail="blockSize must be in range [64, 65536]")

    payload = await audio.read()
    if not payload:
        raise HTTPException(status_code=400, detail="Audio file is empty")

    try:
        samples, sample_rate = _decode_audio(payload)
    except Exception as exc:  # noqa: BLE001
        logger.info("Rejected upload %r: %s", audio.filename, exc)
        raise HTTPException(status_code=400, detail=f"Unable to decode audio: {exc}") from exc

    analyzer = FrequencyAnalyzer(AnalyzerConfig(sample_rate=sample_rate))
    results = analyze_blocks(samples, analyzer, block_size)
    dominant = dominant_result(results)

    response = AnalyzeResponse(
        sample_rate=sample_rate,
        block_size=block_size,
        results=[r.to_dict() if r is not None else None for r in results],
        dominant=dominant.to_dict() if dominant is not None else None,
    )
    return response.model_dump(by_alias=True)


@app.websocket("/ws/realtime")
async def realtime_ws(websocket: WebSocket) -> None:
    await websocket.accept()
    session = sessions.create()
    await websocket.send_json(_status("Connected."))

    try:
        while True:
            message = await websocket.receive()
            if message.get("type") == "websocket.disconnect":
                break
            text = message.get("text")
            binary = message.get("bytes")

            if text is not None:
                for event in _handle_text_message(session, text):
                    await websocket.send_json(event)
            elif binary is not None:
                for event in session.process_audio_bytes(binary):
                    await websocket.send_json(event)
    except WebSocketDisconnect:
        pass
    finally:
        sessions.remove(session.session_id)


def _handle_text_message(session: RealtimeSession, text: str) -> list[dict[str, object]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return [_error("invalid_json", "Invalid JSON payload")]

    if not isinstance(payload, dict):
        return [_error("invalid_payload", "Expected JSON object")]

    msg_type = payload.get("type")
    try:
        if msg_type == "init":
            msg = InitMessage.model_validate(payload)
            session.init(sample_rate=msg.sample_rate, block_size=msg.block_size)
            return [_status("Session initialized.")]

        if msg_type == "transport_ping":
            msg = TransportPingMessage.model_validate(payload)
            return [
                {
                    "type": "transport_pong",
                    "clientTs": msg.client_ts,
                    "serverTs": time.time(),
                }
            ]

    except ValidationError as exc:
        return [_error("invalid_message", str(exc))]

    return [_error("unknown_message", f"Unknown type: {msg_type}")]


def _status(message: str) -> dict[str, object]:
    return StatusEvent(message=message).model_dump(by_alias=True)


def _error(code: str, message: str) -> dict[str, object]:
    return ErrorEvent(code=code, message=message).model_dump(by_alias=True)


def _decode_audio(payload: bytes) -> tuple[np.ndarray, int]:
    data, sample_rate = sf.read(io.BytesIO(payload), dtype="int16", always_2d=True)
    if data.shape[0] == 0:
        raise ValueError("decoded audio is empty")
    # Average channels in a wider type, then narrow back to int16.
    mono = np.mean(data.astype(np.int32), axis=1)
    return np.round(mono).astype(np.int16), int(sample_rate)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "tone_finder.web.server:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    main()
