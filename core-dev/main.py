import base64
import hashlib
import hmac
import json
import os
import secrets
from datetime import datetime, timezone
from itertools import count
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

app = FastAPI()

# dev-core: a local stand-in for random.org's JSON-RPC API. Blocks are signed
# with HMAC-SHA512 over the compact JSON of the random block, so a block that
# is not replayed exactly as issued fails verification.
SIGNING_KEY = os.getenv("DEV_CORE_SIGNING_KEY", "dev-core").encode()
DEV_API_KEY = os.getenv("DEV_CORE_API_KEY", "")

_serials = count(1)


def _sign(random: Dict[str, Any]) -> str:
    blob = json.dumps(random, separators=(",", ":")).encode()
    return base64.b64encode(hmac.new(SIGNING_KEY, blob, hashlib.sha512).digest()).decode()


def _error(rpc_id, code: int, message: str) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": rpc_id})


def _generate_signed_integers(lo: int, hi: int, params: Dict[str, Any]) -> Dict[str, Any]:
    n = params.get("n", 1)
    random = {
        "method": "generateSignedIntegers",
        "hashedApiKey": base64.b64encode(hashlib.sha512(str(params.get("apiKey", "")).encode()).digest()).decode(),
        "n": n,
        "min": lo,
        "max": hi,
        "replacement": params.get("replacement", True),
        "base": params.get("base", 10),
        "data": [lo + secrets.randbelow(hi - lo + 1) for _ in range(n)],
        "completionTime": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ"),
        "serialNumber": next(_serials),
    }
    return {"random": random, "signature": _sign(random), "bitsUsed": 0, "bitsLeft": 250000, "requestsLeft": 1000}


def _verify_signature(params: Dict[str, Any]) -> Dict[str, Any]:
    expected = _sign(params["random"])
    return {"authenticity": hmac.compare_digest(expected, str(params["signature"]))}


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/json-rpc/4/invoke")
async def invoke(request: Request):
    body = await request.json()
    rpc_id = body.get("id")
    method = body.get("method")
    params = body.get("params") or {}

    if method == "generateSignedIntegers":
        if DEV_API_KEY and params.get("apiKey") != DEV_API_KEY:
            return _error(rpc_id, 400, "The API key you specified does not exist")
        try:
            lo, hi = int(params["min"]), int(params["max"])
        except (KeyError, TypeError, ValueError):
            return _error(rpc_id, 200, "Parameter 'min'/'max' is malformed")
        if hi < lo:
            return _error(rpc_id, 300, "Parameter 'min' must be less than or equal to 'max'")
        result = _generate_signed_integers(lo, hi, params)
    elif method == "verifySignature":
        if "random" not in params or "signature" not in params:
            return _error(rpc_id, 200, "Parameters 'random' and 'signature' are required")
        result = _verify_signature(params)
    else:
        return _error(rpc_id, -32601, "Method not found")

    return {"jsonrpc": "2.0", "result": result, "id": rpc_id}
