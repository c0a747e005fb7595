from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class HealthCheckResponse(BaseModel):
    status: str
    now: datetime
    uptime_seconds: float
    db_ok: bool
    extra: Optional[Dict[str, Any]] = None


class SystemMetricsResponse(BaseModel):
    uptime_seconds: float
    now: datetime

    # middleware counters
    requests_count: int
    avg_response_ms: Optional[float] = None
    cache_hits: int
    cache_misses: int
    cache_hit_rate: Optional[float] = None
    cache_entries: int

    # DB metrics
    active_products: int
    pending_registrations: int
    approved_clients: int
    client_prices: int
    price_changes_today: int

    extra: Optional[Dict[str, Any]] = None
