import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1024 * 1024
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

logging.basicConfig(level=LOG_LEVEL.upper())

app = FastAPI(title="whatsapp-flows-endpoint")


def _too_large() -> JSONResponse:
    return JSONResponse(status_code=413, content={"ok": False, "error": "payload too large"})


@app.get("/health")
async def health():
    return {"ok": True, "service": "whatsapp-flows-endpoint"}


# Minimal Flows data_exchange placeholder. The real request/response contract
# gets filled in once a payload from Meta has been captured.
@app.post("/wa/flows")
async def flows(request: Request):
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        return _too_large()

    body = await request.body()
    if len(body) > MAX_BODY_BYTES:
        return _too_large()

    payload = None
    if body:
        try:
            payload = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"ok": False, "error": "invalid JSON"})

    keys = list(payload.keys()) if isinstance(payload, dict) else []
    logger.info("flows request with keys %s", keys)
    return {
        "ok": True,
        "note": "endpoint reachable",
        "receivedKeys": keys,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
