"""Generate / verify orchestration."""

import logging
import re
from typing import Any, Dict, Optional, Protocol, Tuple

from pydantic import BaseModel

from .errors import InvalidRequest, NotFoundOrExpired, UpstreamError, UpstreamFailure
from .store import ProofStore, SignedResult

logger = logging.getLogger(__name__)

SOURCE = "random.org"

_INT_RE = re.compile(r"^[+-]?\d+$")


class Provider(Protocol):
    async def generate_signed(self, min: int, max: int) -> SignedResult: ...

    async def verify_signature(self, result: SignedResult) -> bool: ...


class GenerateResult(BaseModel):
    value: int
    min: int
    max: int
    source: str = SOURCE
    completion_time: Optional[str] = None
    serial_number: Optional[int] = None
    reference: str


class VerifyResult(BaseModel):
    reference: str
    authentic: bool
    random: Dict[str, Any]
    signature: str


def parse_int(raw: Any, field: str) -> int:
    """Accept ints, integral floats and integer strings; reject the rest."""
    if raw is None:
        raise InvalidRequest(f"{field} is required", {"field": field})
    if isinstance(raw, bool):
        raise InvalidRequest(f"{field} must be an integer", {"field": field})
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if raw.is_integer():
            return int(raw)
        raise InvalidRequest(f"{field} must be an integer", {"field": field})
    if isinstance(raw, str) and _INT_RE.match(raw.strip()):
        try:
            return int(raw.strip())
        except ValueError:
            # past the interpreter's int string conversion limit
            pass
    raise InvalidRequest(f"{field} must be an integer", {"field": field})


class RngService:
    def __init__(self, provider: Provider, store: ProofStore) -> None:
        self.provider = provider
        self.store = store

    def validate_range(self, min: Any, max: Any) -> Tuple[int, int]:
        lo = parse_int(min, "min")
        hi = parse_int(max, "max")
        if hi < lo:
            raise InvalidRequest(
                "max must be greater than or equal to min",
                {"min": lo, "max": hi},
            )
        return lo, hi

    async def generate(self, min: Any, max: Any) -> GenerateResult:
        lo, hi = self.validate_range(min, max)

        try:
            signed = await self.provider.generate_signed(lo, hi)
        except UpstreamError as e:
            raise UpstreamFailure(e.message, e.details) from e

        reference = self.store.put(signed)
        logger.info(
            "Generated signed integer serial=%s ref=%s...",
            signed.serial_number,
            reference[:6],
        )
        return GenerateResult(
            value=signed.value,
            min=lo,
            max=hi,
            completion_time=signed.completion_time,
            serial_number=signed.serial_number,
            reference=reference,
        )

    def lookup(self, reference: str) -> SignedResult:
        signed = self.store.get(reference)
        if signed is None:
            logger.debug("Unknown or expired reference %s...", reference[:6])
            raise NotFoundOrExpired(
                "This link is unknown or has expired.",
                {"reference": reference},
            )
        return signed

    async def verify(self, reference: str) -> VerifyResult:
        signed = self.lookup(reference)

        try:
            authentic = await self.provider.verify_signature(signed)
        except UpstreamError as e:
            raise UpstreamFailure(e.message, e.details) from e

        logger.info("Verified ref=%s... authentic=%s", reference[:6], authentic)
        return VerifyResult(
            reference=reference,
            authentic=authentic,
            random=signed.random,
            signature=signed.signature,
        )
