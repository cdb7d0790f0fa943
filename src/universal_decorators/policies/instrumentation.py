"""Decorator @metrics: duração e resultado de cada chamada."""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..config import DecoratorConfig
from ..constants import DEFAULT_MAX_SAMPLES, METRIC_KINDS
from ..protocols import MetricsSink
from ..telemetry import MetricsAccumulator, MetricsSnapshot, NoOpMetricsSink
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)


class MetricsPolicy(Policy):
    """Mede cada chamada e alimenta o acumulador privado e o sink."""

    name = "metrics"

    def __init__(
        self,
        track: tuple[str, ...] = METRIC_KINDS,
        name: str | None = None,
        labels: Mapping[str, str] | None = None,
        sink: MetricsSink | None = None,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        super().__init__()
        self._metric_name = name
        self._labels = dict(labels or {})
        self._sink = sink or NoOpMetricsSink()
        self._accumulator = MetricsAccumulator(track, max_samples)

    @property
    def metric_name(self) -> str:
        return self._metric_name or self.target.qualified_name

    def _record(self, start_time: float, error: BaseException | None) -> None:
        duration = time.perf_counter() - start_time
        self._accumulator.record(duration, error)
        try:
            self._sink.record_call(self.metric_name, duration, error, self._labels)
        except Exception as e:
            # Falha do sink não afeta a chamada
            logger.warning(f"Metrics sink failed for {self.metric_name}: {e}")

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        start_time = time.perf_counter()
        try:
            result = proceed(call)
        except Exception as e:
            self._record(start_time, e)
            raise
        self._record(start_time, None)
        return result

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        start_time = time.perf_counter()
        try:
            result = await proceed(call)
        except Exception as e:
            self._record(start_time, e)
            raise
        self._record(start_time, None)
        return result

    def get_metrics(self) -> MetricsSnapshot:
        """Retorna cópia das métricas acumuladas."""
        return self._accumulator.snapshot()

    def clear_metrics(self) -> None:
        self._accumulator.reset()

    def accessors(self) -> dict[str, Callable[..., Any]]:
        return {"get_metrics": self.get_metrics, "clear_metrics": self.clear_metrics}


def metrics(
    track: Iterable[str] = METRIC_KINDS,
    name: str | None = None,
    labels: Mapping[str, str] | None = None,
    sink: MetricsSink | None = None,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que coleta métricas de execução.

    Args:
        track: Subconjunto de ``calls``, ``duration`` e ``errors``
        name: Nome exportado ao sink (default: nome qualificado da função)
        labels: Atributos extras exportados ao sink
        sink: Destino das métricas (ex.: OpenTelemetryMetricsSink)
        max_samples: Durações individuais mantidas

    Returns:
        Decorator que adiciona ``get_metrics()`` e ``clear_metrics()``

    Raises:
        ValueError: Se track tiver métrica desconhecida ou max_samples < 1
    """
    tracked = tuple(track)
    for kind in tracked:
        DecoratorConfig.validate_choice("track", kind, METRIC_KINDS)
    DecoratorConfig.validate_positive("max_samples", max_samples)
    return policy_decorator(lambda: MetricsPolicy(tracked, name, labels, sink, max_samples))
