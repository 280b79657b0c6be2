import asyncio
import logging
import time
from typing import Optional

from fastapi import Depends, FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from . import pages
from .auth import (
    LoginRequired,
    PassphraseNotConfigured,
    SessionStore,
    check_passphrase,
    require_session,
)
from .errors import RngWebError, UpstreamFailure
from .provider import RandomOrgClient
from .service import RngService
from .settings import Settings, settings as default_settings
from .store import MemoryProofStore, ProofStore

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "base-uri 'self'",
        "frame-ancestors 'none'",
        "object-src 'none'",
        "script-src 'self'",
        "style-src 'self'",
        "img-src 'self' data:",
        "connect-src 'self'",
        "form-action 'self'",
    ]
)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    provider=None,
    store: Optional[ProofStore] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    if provider is None:
        provider = RandomOrgClient(
            api_key=settings.RANDOM_ORG_API_KEY.get_secret_value(),
            url=str(settings.RANDOM_ORG_URL),
            timeout=settings.PROVIDER_TIMEOUT,
        )
    if store is None:
        store = MemoryProofStore(ttl_seconds=settings.PROOF_TTL_SECONDS)

    build_id = str(int(time.time() * 1000))
    limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

    app = FastAPI(title="rng-web", version=settings.SERVICE_VERSION)
    app.state.settings = settings
    app.state.service = RngService(provider, store)
    app.state.sessions = SessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # -------------------------------------------------------------------
    # Middleware: security + service headers
    # -------------------------------------------------------------------

    @app.middleware("http")
    async def add_svc_headers(request: Request, call_next):
        resp = await call_next(request)
        resp.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["X-RNG-Web-Version"] = settings.SERVICE_VERSION
        return resp

    # -------------------------------------------------------------------
    # Error mapping
    # -------------------------------------------------------------------

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse("/login", status_code=303)

    @app.exception_handler(RngWebError)
    async def rng_error_handler(request: Request, exc: RngWebError):
        if request.url.path.startswith("/api/"):
            return JSONResponse(
                status_code=exc.status_code,
                content={"ok": False, "error": exc.kind, "detail": exc.message},
            )
        title = "Expired" if exc.status_code == 404 else "Error"
        return HTMLResponse(
            pages.message_page(title, exc.message, build_id=build_id),
            status_code=exc.status_code,
        )

    # -------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------

    def _set_session_cookie(resp: Response, sid: str) -> None:
        resp.set_cookie(
            settings.SESSION_COOKIE,
            sid,
            max_age=int(settings.SESSION_TTL_SECONDS),
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.COOKIE_SECURE,
        )

    @app.get("/health")
    async def health():
        return {"ok": True, "service": "rng-web"}

    @app.get("/login", response_class=HTMLResponse)
    async def login_form(err: str = ""):
        return HTMLResponse(pages.login_page(err, build_id=build_id))

    @app.post("/login")
    @limiter.limit(settings.LOGIN_RATE_LIMIT)
    async def login(request: Request, passphrase: str = Form(default="")):
        try:
            ok = check_passphrase(passphrase, settings.PASSPHRASE_SHA256)
        except PassphraseNotConfigured:
            logger.error("PASSPHRASE_SHA256 is missing or malformed")
            return HTMLResponse("Server misconfigured", status_code=500)

        if not ok:
            logger.warning("Failed login from %s", get_remote_address(request))
            await asyncio.sleep(settings.LOGIN_FAILURE_DELAY)
            return RedirectResponse("/login?err=Wrong%20passphrase", status_code=303)

        resp = RedirectResponse("/", status_code=303)
        _set_session_cookie(resp, app.state.sessions.create())
        return resp

    @app.get("/logout")
    async def logout(request: Request):
        app.state.sessions.drop(request.cookies.get(settings.SESSION_COOKIE))
        resp = RedirectResponse("/login", status_code=303)
        resp.delete_cookie(
            settings.SESSION_COOKIE,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.COOKIE_SECURE,
        )
        return resp

    # -------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------

    @app.get("/assets/{name}")
    async def asset(name: str):
        if name not in pages.ASSETS:
            return Response(status_code=404)
        media_type, body = pages.ASSETS[name]
        return Response(body, media_type=media_type, headers={"Cache-Control": "no-store"})

    # -------------------------------------------------------------------
    # App routes
    # -------------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    async def home(sid: str = Depends(require_session)):
        return HTMLResponse(pages.home_page(build_id=build_id))

    @app.get("/api/rng")
    async def generate(
        min: Optional[str] = Query(default=None),
        max: Optional[str] = Query(default=None),
        sid: str = Depends(require_session),
    ):
        result = await app.state.service.generate(min, max)
        return {
            "ok": True,
            "value": result.value,
            "min": result.min,
            "max": result.max,
            "source": result.source,
            "completionTime": result.completion_time,
            "serialNumber": result.serial_number,
            "reference": result.reference,
            "verifyUrl": f"/verify/{result.reference}",
            "resultUrl": f"/result/{result.reference}",
        }

    @app.get("/api/verify/{reference}")
    async def verify_api(reference: str, sid: str = Depends(require_session)):
        outcome = await app.state.service.verify(reference)
        return {
            "ok": True,
            "reference": outcome.reference,
            "authentic": outcome.authentic,
            "random": outcome.random,
            "signature": outcome.signature,
        }

    @app.get("/result/{reference}", response_class=HTMLResponse)
    async def result_view(reference: str, sid: str = Depends(require_session)):
        signed = app.state.service.lookup(reference)
        return HTMLResponse(pages.result_page(reference, signed, build_id=build_id))

    @app.get("/verify/{reference}", response_class=HTMLResponse, name="verify_view")
    async def verify_view(request: Request, reference: str, sid: str = Depends(require_session)):
        service: RngService = app.state.service
        signed = service.lookup(reference)
        proof_url = str(request.url_for("verify_view", reference=reference))

        try:
            outcome = await service.verify(reference)
        except UpstreamFailure as e:
            return HTMLResponse(
                pages.verify_page(proof_url, signed, None, error=e.message, build_id=build_id),
                status_code=502,
            )
        return HTMLResponse(pages.verify_page(proof_url, signed, outcome.authentic, build_id=build_id))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)
