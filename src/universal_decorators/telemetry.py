"""Métricas de chamadas e sinks de exportação (OpenTelemetry)."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from opentelemetry import metrics as otel_metrics

from .constants import DEFAULT_MAX_SAMPLES

logger = logging.getLogger(__name__)


@dataclass
class MetricsSnapshot:
    """Cópia das métricas de uma função decorada.

    Attributes:
        calls: Chamadas registradas
        errors: Chamadas que levantaram exceção
        total_duration: Soma das durações em segundos
        durations: Durações individuais (mais antigas descartadas após max_samples)
        last_called: Momento da última chamada (UTC)
    """

    calls: int = 0
    errors: int = 0
    total_duration: float = 0.0
    durations: list[float] = field(default_factory=list)
    last_called: datetime | None = None

    @property
    def average_duration(self) -> float:
        """Duração média por chamada em segundos."""
        return self.total_duration / self.calls if self.calls > 0 else 0.0

    @property
    def average_duration_ms(self) -> float:
        return self.average_duration * 1000

    @property
    def success_rate(self) -> float:
        """Percentual de chamadas sem erro (100.0 sem chamadas)."""
        if self.calls == 0:
            return 100.0
        return (self.calls - self.errors) / self.calls * 100

    def as_dict(self) -> dict[str, Any]:
        return {
            "calls": self.calls,
            "errors": self.errors,
            "total_duration": self.total_duration,
            "durations": list(self.durations),
            "last_called": self.last_called,
            "average_duration": self.average_duration,
            "success_rate": self.success_rate,
        }


class MetricsAccumulator:
    """Acumulador privado de uma função decorada com @metrics.

    Thread-safe. Nunca é zerado automaticamente, apenas via ``reset()``.
    """

    def __init__(self, track: tuple[str, ...], max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        self._track = frozenset(track)
        self._max_samples = max_samples
        self._lock = Lock()
        self._data = MetricsSnapshot()

    def record(self, duration: float, error: BaseException | None = None) -> None:
        """Registra uma chamada."""
        with self._lock:
            self._data.last_called = datetime.now(timezone.utc)

            if "calls" in self._track:
                self._data.calls += 1

            if "duration" in self._track:
                self._data.total_duration += duration
                self._data.durations.append(duration)
                self._trim_samples(self._data.durations)

            if error is not None and "errors" in self._track:
                self._data.errors += 1

    def _trim_samples(self, samples: list[float]) -> None:
        """Remove amostras antigas se exceder limite."""
        if len(samples) > self._max_samples:
            del samples[: len(samples) - self._max_samples]

    def snapshot(self) -> MetricsSnapshot:
        """Retorna cópia das métricas atuais."""
        with self._lock:
            return replace(self._data, durations=self._data.durations.copy())

    def reset(self) -> None:
        """Zera todas as métricas."""
        with self._lock:
            self._data = MetricsSnapshot()


class NoOpMetricsSink:
    """Sink que não faz nada (default)."""

    def record_call(
        self,
        name: str,
        duration: float,
        error: BaseException | None,
        labels: dict[str, str],
    ) -> None:
        pass


class InMemoryMetricsSink:
    """Agrega as métricas de várias funções decoradas, por nome.

    Útil para desenvolvimento, testes e painéis simples de performance.

    Example:
        ```python
        monitor = InMemoryMetricsSink()

        @metrics(name="load_user", sink=monitor)
        def load_user(user_id): ...

        @metrics(name="save_user", sink=monitor)
        def save_user(user): ...

        monitor.get_stats("load_user").average_duration
        ```
    """

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        self._max_samples = max_samples
        self._lock = Lock()
        self._by_name: dict[str, MetricsSnapshot] = defaultdict(MetricsSnapshot)

    def record_call(
        self,
        name: str,
        duration: float,
        error: BaseException | None,
        labels: dict[str, str],
    ) -> None:
        """Registra chamada de ``name``."""
        with self._lock:
            stats = self._by_name[name]
            stats.calls += 1
            stats.total_duration += duration
            stats.durations.append(duration)
            if len(stats.durations) > self._max_samples:
                del stats.durations[: len(stats.durations) - self._max_samples]
            stats.last_called = datetime.now(timezone.utc)
            if error is not None:
                stats.errors += 1

    def get_stats(self, name: str) -> MetricsSnapshot | None:
        """Retorna estatísticas de uma função específica."""
        with self._lock:
            if name not in self._by_name:
                return None
            stats = self._by_name[name]
            return replace(stats, durations=stats.durations.copy())

    def get_all_stats(self) -> dict[str, MetricsSnapshot]:
        """Retorna estatísticas de todas as funções."""
        with self._lock:
            return {name: replace(stats, durations=stats.durations.copy()) for name, stats in self._by_name.items()}

    def get_slowest(self, limit: int = 10) -> list[tuple[str, float]]:
        """Retorna as funções com maior duração média.

        Args:
            limit: Número máximo de funções a retornar
        """
        with self._lock:
            items = [(name, stats.average_duration) for name, stats in self._by_name.items()]
        items.sort(key=lambda x: x[1], reverse=True)
        return items[:limit]

    def reset(self) -> None:
        """Reseta todas as estatísticas."""
        with self._lock:
            self._by_name.clear()


class OpenTelemetryMetricsSink:
    """Sink que exporta as chamadas via OpenTelemetry.

    Métricas exportadas:
    - function.calls (counter): Número de chamadas
    - function.errors (counter): Número de chamadas com erro
    - function.duration (histogram): Duração das chamadas em segundos

    Example:
        ```python
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry import metrics

        metrics.set_meter_provider(MeterProvider())

        @metrics(sink=OpenTelemetryMetricsSink())
        def my_function():
            pass
        ```
    """

    def __init__(self, meter_name: str = "universal_decorators") -> None:
        """Inicializa métricas OpenTelemetry.

        Args:
            meter_name: Nome do meter para agrupar métricas
        """
        meter = otel_metrics.get_meter(meter_name)

        self._calls_counter = meter.create_counter(
            "function.calls",
            description="Número de chamadas da função",
            unit="1",
        )
        self._errors_counter = meter.create_counter(
            "function.errors",
            description="Número de chamadas com erro",
            unit="1",
        )
        self._duration_histogram = meter.create_histogram(
            "function.duration",
            description="Duração das chamadas",
            unit="s",
        )

    def record_call(
        self,
        name: str,
        duration: float,
        error: BaseException | None,
        labels: dict[str, str],
    ) -> None:
        """Registra chamada."""
        attributes = {"function": name, **labels}
        self._calls_counter.add(1, attributes)
        self._duration_histogram.record(duration, attributes)
        if error is not None:
            self._errors_counter.add(1, {**attributes, "error_type": type(error).__name__})
