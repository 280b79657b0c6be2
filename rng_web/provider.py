"""random.org JSON-RPC client: generateSignedIntegers and verifySignature."""

import itertools
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import UpstreamError
from .store import SignedResult

logger = logging.getLogger(__name__)

RANDOM_ORG_URL = "https://api.random.org/json-rpc/4/invoke"
DEFAULT_TIMEOUT = 10.0


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class RandomOrgClient:
    def __init__(
        self,
        api_key: str,
        url: str = RANDOM_ORG_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"RandomOrgClient(url={self.url!r}, timeout={self.timeout})"

    async def _call(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """POST one JSON-RPC request and return its ``result`` object."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            logger.warning("random.org %s timed out after %ss", method, self.timeout)
            raise UpstreamError(
                "random.org call timed out",
                {"method": method, "timeout": self.timeout},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("random.org %s failed: %s", method, type(e).__name__)
            raise UpstreamError(
                "random.org call failed",
                {"method": method, "reason": f"{type(e).__name__}: {e}"},
            ) from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if r.status_code >= 400 or not isinstance(body, dict):
            logger.warning("random.org %s answered HTTP %s", method, r.status_code)
            raise UpstreamError(
                "random.org error",
                {"method": method, "status": r.status_code},
            )

        if body.get("error"):
            err = body["error"]
            logger.warning("random.org %s returned error: %s", method, err)
            raise UpstreamError(
                "random.org error",
                {"method": method, "status": r.status_code, "error": err},
            )

        result = body.get("result")
        if not isinstance(result, dict):
            raise UpstreamError("Unexpected random.org payload", {"method": method, "missing": "result"})
        return result

    async def generate_signed(self, min: int, max: int) -> SignedResult:
        result = await self._call(
            "generateSignedIntegers",
            {
                "apiKey": self._api_key,
                "n": 1,
                "min": min,
                "max": max,
                "replacement": True,
                "base": 10,
            },
        )

        random = result.get("random")
        signature = result.get("signature")
        data = random.get("data") if isinstance(random, dict) else None
        if not isinstance(data, list) or not data or not _is_int(data[0]):
            raise UpstreamError(
                "Unexpected random.org payload",
                {"method": "generateSignedIntegers", "missing": "random.data[0]"},
            )
        if not isinstance(signature, str):
            raise UpstreamError(
                "Unexpected random.org payload",
                {"method": "generateSignedIntegers", "missing": "signature"},
            )
        if not min <= data[0] <= max:
            raise UpstreamError(
                "Unexpected random.org payload",
                {"method": "generateSignedIntegers", "invalid": "random.data[0]"},
            )

        return SignedResult.from_provider(random, signature)

    async def verify_signature(self, result: SignedResult) -> bool:
        body = await self._call(
            "verifySignature",
            {"random": result.random, "signature": result.signature},
        )
        authenticity = body.get("authenticity")
        if not isinstance(authenticity, bool):
            raise UpstreamError(
                "Unexpected random.org payload",
                {"method": "verifySignature", "missing": "authenticity"},
            )
        return authenticity
