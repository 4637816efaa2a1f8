import logging
import re
import uuid

from fastapi import FastAPI, Request

from claimchat.api.notifications import router as notifications_router
from claimchat.api.outbox import router as outbox_router
from claimchat.api.webhooks import router as webhooks_router
from claimchat.core.config import settings
from claimchat.infrastructure.http.resilient_client import CORRELATION_HEADER
from claimchat.wiring.dependencies import get_breaker_registry

_CORRELATION_ID_RE = re.compile(r"[A-Za-z0-9._:-]{1,128}")

LOG_CONTEXT_KEYS = (
    "correlation_id",
    "identity",
    "state",
    "next_state",
    "dependency",
    "attempt",
    "delay_seconds",
    "event_type",
    "message_id",
    "user_id",
    "reason",
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in LOG_CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="ClaimChat", version="1.0.0")


def resolve_correlation_id(value: str | None) -> str:
    """Use the caller's id when it is a short ASCII token; anything else gets a fresh uuid4."""
    if value and _CORRELATION_ID_RE.fullmatch(value):
        return value
    return str(uuid.uuid4())


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


app.include_router(webhooks_router, tags=["webhooks"])
app.include_router(outbox_router, tags=["outbox"])
app.include_router(notifications_router, tags=["notifications"])


@app.get("/health")
def health() -> dict[str, object]:
    circuits = {name: snap.state.value for name, snap in get_breaker_registry().snapshot().items()}
    return {"status": "ok", "circuits": circuits}
