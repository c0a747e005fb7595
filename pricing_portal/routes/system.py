from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricing_portal.core.cache import QueryCache
from pricing_portal.database.connection import get_db
from pricing_portal.dependencies.auth import require_admin
from pricing_portal.dependencies.providers import get_cache
from pricing_portal.enums.statuses import AccountStatus, RegistrationStatus, UserRole
from pricing_portal.models.client_price import ClientPrice
from pricing_portal.models.price_history import PriceHistory
from pricing_portal.models.product import Product
from pricing_portal.models.registration_request import RegistrationRequest
from pricing_portal.models.user_profile import UserProfile
from pricing_portal.schemas.system import HealthCheckResponse, SystemMetricsResponse

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Lightweight public health check.
    Returns ok + DB connectivity check (SELECT 1).
    """
    now = datetime.utcnow()
    start_time = getattr(request.app.state, "start_time", now)
    uptime_seconds = (now - start_time).total_seconds()

    db_ok = True
    extra = {}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_ok = False
        extra["db_error"] = str(e)

    return HealthCheckResponse(
        status="ok" if db_ok else "degraded",
        now=now,
        uptime_seconds=uptime_seconds,
        db_ok=db_ok,
        extra=extra or None,
    )


def _count(db: Session, model, *criteria) -> int:
    return db.query(func.count()).select_from(model).filter(*criteria).scalar() or 0


@router.get("/metrics", response_model=SystemMetricsResponse, dependencies=[Depends(require_admin)])
def system_metrics(
    request: Request,
    db: Session = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """
    Admin-only system metrics in JSON form.
    In-process request and cache counters plus a few DB-derived counts.
    """
    now = datetime.utcnow()
    start_time = getattr(request.app.state, "start_time", now)
    uptime_seconds = (now - start_time).total_seconds()

    metrics = getattr(request.app.state, "metrics", None) or {}
    requests_count = int(metrics.get("requests", 0))
    total_response_ms = float(metrics.get("total_response_ms", 0.0))
    avg_response_ms = (total_response_ms / requests_count) if requests_count > 0 else None

    lookups = cache.hits + cache.misses
    cache_hit_rate = (cache.hits / lookups) * 100.0 if lookups > 0 else None

    start_today = datetime.combine(now.date(), datetime.min.time())

    return SystemMetricsResponse(
        uptime_seconds=uptime_seconds,
        now=now,
        requests_count=requests_count,
        avg_response_ms=avg_response_ms,
        cache_hits=cache.hits,
        cache_misses=cache.misses,
        cache_hit_rate=cache_hit_rate,
        cache_entries=len(cache),
        active_products=_count(db, Product, Product.is_active.is_(True)),
        pending_registrations=_count(
            db, RegistrationRequest,
            RegistrationRequest.status == RegistrationStatus.pending.value,
        ),
        approved_clients=_count(
            db, UserProfile,
            UserProfile.role == UserRole.client.value,
            UserProfile.status == AccountStatus.approved.value,
        ),
        client_prices=_count(db, ClientPrice),
        price_changes_today=_count(db, PriceHistory, PriceHistory.changed_at >= start_today),
        extra=None,
    )
