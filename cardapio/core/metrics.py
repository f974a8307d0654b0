from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock

# rota não casada (404 de caminho desconhecido) cai num balde só
UNMATCHED_ROUTE = "<unmatched>"


@dataclass
class EndpointMetric:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    error_count: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)


def status_family(status_code: int) -> str:
    return f"{status_code // 100}xx"


class InMemoryRequestMetrics:
    """Contadores por rota (template, não caminho cru), mantidos só em memória."""

    def __init__(self) -> None:
        self._metrics: dict[tuple[str, str], EndpointMetric] = {}
        self._lock = Lock()

    def observe(self, route: str | None, method: str, status_code: int, duration_ms: float) -> None:
        key = (route or UNMATCHED_ROUTE, method)
        with self._lock:
            metric = self._metrics.setdefault(key, EndpointMetric())
            metric.total_requests += 1
            metric.total_duration_ms += duration_ms
            family = status_family(status_code)
            metric.status_counts[family] = metric.status_counts.get(family, 0) + 1
            if status_code >= 400:
                metric.error_count += 1

    def snapshot(self) -> dict[str, dict[str, object]]:
        with self._lock:
            result: dict[str, dict[str, object]] = {}
            for (route, method), metric in sorted(self._metrics.items()):
                avg = metric.total_duration_ms / metric.total_requests if metric.total_requests else 0.0
                result[f"{method} {route}"] = {
                    "total_requests": metric.total_requests,
                    "total_duration_ms": round(metric.total_duration_ms, 2),
                    "avg_duration_ms": round(avg, 2),
                    "error_count": metric.error_count,
                    "status_counts": dict(metric.status_counts),
                }
            return result

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


request_metrics = InMemoryRequestMetrics()
