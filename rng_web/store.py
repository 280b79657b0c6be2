"""In-memory proof store with lazy TTL expiry."""

import json
import logging
import secrets
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 6 * 60 * 60

# 16 bytes -> 128-bit reference
REFERENCE_BYTES = 16

# full sweep after this many inserts; 0 disables it
SWEEP_EVERY = 256


@dataclass(frozen=True)
class SignedResult:
    # random block kept as JSON text; readers get a fresh copy with the same key order
    random_json: str
    signature: str
    stored_at: float = 0.0

    @classmethod
    def from_provider(cls, random: Dict[str, Any], signature: str) -> "SignedResult":
        return cls(random_json=json.dumps(random), signature=signature)

    @property
    def random(self) -> Dict[str, Any]:
        return json.loads(self.random_json)

    @property
    def value(self) -> Any:
        return self.random["data"][0]

    @property
    def completion_time(self) -> Optional[str]:
        return self.random.get("completionTime")

    @property
    def serial_number(self) -> Optional[int]:
        return self.random.get("serialNumber")


class ProofStore(Protocol):
    """Interface the orchestrator needs from a proof store."""

    def put(self, result: SignedResult) -> str:
        """Store ``result`` and return a fresh reference for it."""
        ...

    def get(self, reference: str) -> Optional[SignedResult]:
        """Return the live result for ``reference``, or None."""
        ...


def new_reference() -> str:
    return secrets.token_urlsafe(REFERENCE_BYTES)


class MemoryProofStore:
    """Process-local proof store guarded by a single lock."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        sweep_every: int = SWEEP_EVERY,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.sweep_every = sweep_every
        self._clock = clock
        self._entries: Dict[str, SignedResult] = {}
        self._puts = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: SignedResult, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def put(self, result: SignedResult) -> str:
        entry = replace(result, stored_at=self._clock())
        with self._lock:
            reference = new_reference()
            while reference in self._entries:
                reference = new_reference()
            self._entries[reference] = entry
            self._puts += 1
            due = self.sweep_every and self._puts % self.sweep_every == 0
        if due:
            self.sweep()
        return reference

    def get(self, reference: str) -> Optional[SignedResult]:
        with self._lock:
            entry = self._entries.get(reference)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[reference]
                logger.debug("Evicted expired proof %s...", reference[:6])
                return None
            return entry

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [ref for ref, entry in self._entries.items() if self._expired(entry, now)]
            for ref in stale:
                del self._entries[ref]
        if stale:
            logger.debug("Swept %d expired proofs", len(stale))
        return len(stale)
