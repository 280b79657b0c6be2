"""
Pytest fixtures for the rng-web test suite.

The random.org API is emulated by ``RandomOrgStub`` behind an
``httpx.MockTransport``, so the real ``RandomOrgClient`` code path runs
without network access.
"""

import hashlib
import json
import secrets
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rng_web.main import create_app
from rng_web.provider import RandomOrgClient
from rng_web.service import RngService
from rng_web.settings import Settings
from rng_web.store import MemoryProofStore

PASSPHRASE = "correct horse battery staple"
API_KEY = "test-api-key-5f0c2a9e"
RANDOM_ORG_URL = "https://api.random.org/json-rpc/4/invoke"
TTL = 6 * 60 * 60


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RandomOrgStub:
    """Answers generateSignedIntegers / verifySignature like random.org does.

    Set ``generate_response`` / ``verify_response`` to a dict to return that
    body verbatim, or ``authenticity`` to force the verification verdict.
    """

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.issued: Dict[str, Dict[str, Any]] = {}
        self.serial = 0
        self.generate_response: Optional[Dict[str, Any]] = None
        self.verify_response: Optional[Dict[str, Any]] = None
        self.authenticity: Optional[bool] = None

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        method, params = body["method"], body["params"]

        if method == "generateSignedIntegers":
            if self.generate_response is not None:
                return httpx.Response(200, json=self.generate_response)
            return httpx.Response(200, json=self._generate(body["id"], params))

        if method == "verifySignature":
            if self.verify_response is not None:
                return httpx.Response(200, json=self.verify_response)
            if self.authenticity is not None:
                authentic = self.authenticity
            else:
                authentic = self.issued.get(params["signature"]) == params["random"]
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "result": {"authenticity": authentic}, "id": body["id"]},
            )

        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "error": {"code": -32601, "message": "Method not found"}, "id": body["id"]},
        )

    def _generate(self, rpc_id: int, params: Dict[str, Any]) -> Dict[str, Any]:
        self.serial += 1
        lo, hi = params["min"], params["max"]
        random = {
            "method": "generateSignedIntegers",
            "hashedApiKey": "oT3AdLMVZKajz0pgW/8Z+t5sGZkqQSOnAi1aB8Li0tXgWf8LolrgdQ1wn9sKx1ehxhUZmhwUIpAtM8QeRbn51Q==",
            "n": params["n"],
            "min": lo,
            "max": hi,
            "replacement": params["replacement"],
            "base": params["base"],
            "pregeneratedRandomization": None,
            "data": [lo + secrets.randbelow(hi - lo + 1)],
            "license": {"type": "developer", "text": "Random values licensed strictly for development and testing only", "infoUrl": None},
            "licenseData": None,
            "userData": None,
            "ticketData": None,
            "completionTime": "2026-10-19 12:00:%02dZ" % (self.serial % 60),
            "serialNumber": self.serial,
        }
        signature = "c2lnLQ==%d" % self.serial
        self.issued[signature] = random
        return {
            "jsonrpc": "2.0",
            "result": {
                "random": random,
                "signature": signature,
                "bitsUsed": 7,
                "bitsLeft": 249993,
                "requestsLeft": 999,
                "advisoryDelay": 1000,
            },
            "id": rpc_id,
        }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub() -> RandomOrgStub:
    return RandomOrgStub()


@pytest.fixture
def provider(stub) -> RandomOrgClient:
    return RandomOrgClient(
        API_KEY,
        url=RANDOM_ORG_URL,
        timeout=5.0,
        transport=httpx.MockTransport(stub.handler),
    )


@pytest.fixture
def store(clock) -> MemoryProofStore:
    return MemoryProofStore(ttl_seconds=TTL, clock=clock)


@pytest.fixture
def service(provider, store) -> RngService:
    return RngService(provider, store)


def make_settings(**overrides) -> Settings:
    values = dict(
        RANDOM_ORG_API_KEY=API_KEY,
        PASSPHRASE_SHA256=hashlib.sha256(PASSPHRASE.encode()).hexdigest(),
        LOGIN_FAILURE_DELAY=0,
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="debug",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def passphrase() -> str:
    return PASSPHRASE


@pytest.fixture
def api_key() -> str:
    return API_KEY


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings, provider, store):
    return create_app(settings, provider=provider, store=store)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client talking to the ASGI app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as c:
        yield c


@pytest_asyncio.fixture
async def authed_client(client):
    r = await client.post("/login", data={"passphrase": PASSPHRASE})
    assert r.status_code == 303
    yield client
