"""GET /health: liveness check plus the reminder engine's operating mode."""
from __future__ import annotations

from fastapi import APIRouter

from app.core.settings import get_settings
from app.notification.whatsapp_sender import DryRunWhatsAppSender, build_sender

router = APIRouter(tags=["health"])


@router.get("/health", summary="Basic health check")
def health_check() -> dict[str, object]:
    settings = get_settings()
    sender = build_sender(settings)
    if isinstance(sender, DryRunWhatsAppSender):
        gateway = "dry_run"
    else:
        gateway = "configured" if sender.is_configured() else "unconfigured"
    return {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
        "demoMode": settings.demo_mode,
        "gateway": gateway,
    }
