"""Metric strategy interface and registry.

Each ``MetricId`` maps to one strategy per throttling method. Strategies are
independent and swappable: registering a new strategy for a metric replaces
the previous one. ``MetricRegistry.request`` routes every computation through
the run's computed cache so that a metric is derived once per run, no matter
how many audits or other metrics ask for it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Tuple, Union

from ..errors import UnknownMetricError
from ..models.artifacts import DevtoolsLog, Trace
from ..models.budget import MetricId, ThrottlingMethod
from ..models.results import Measurement, ScalarMeasurement


logger = logging.getLogger(__name__)


ALL_THROTTLING_METHODS: FrozenSet[ThrottlingMethod] = frozenset(ThrottlingMethod)


@dataclass(frozen=True)
class MetricInputs:
    """The raw inputs every metric is derived from."""
    trace: Trace
    devtools_log: DevtoolsLog
    throttling_method: ThrottlingMethod


class MetricStrategy(ABC):
    """Computes one metric from a trace and a DevTools log.

    Returning ``None`` means the metric cannot be computed from these inputs;
    it is not an error.
    """

    metric_id: MetricId
    supported_methods: FrozenSet[ThrottlingMethod] = ALL_THROTTLING_METHODS

    @abstractmethod
    async def compute(self, inputs: MetricInputs, context, registry: "MetricRegistry") -> Optional[Measurement]:
        """Compute the measurement, requesting dependencies through ``registry``."""
        ...

    @staticmethod
    def scalar(value: Optional[float]) -> Optional[ScalarMeasurement]:
        """Wrap a millisecond value, keeping ``None`` as not computable."""
        if value is None:
            return None
        return ScalarMeasurement(value=value)


class MetricRegistry:
    """Registry mapping (metric, throttling method) to a strategy."""

    def __init__(self):
        self._strategies: Dict[Tuple[MetricId, ThrottlingMethod], MetricStrategy] = {}

    def register(self, strategy: MetricStrategy,
                 methods: Optional[Iterable[ThrottlingMethod]] = None) -> None:
        """Register a strategy for its metric.

        Args:
            strategy: Strategy instance to register
            methods: Throttling methods to register it for; defaults to the
                strategy's ``supported_methods``
        """
        for method in (methods or strategy.supported_methods):
            key = (strategy.metric_id, ThrottlingMethod(method))
            if key in self._strategies:
                logger.debug(f"Replacing strategy for {key[0].value}/{key[1].value}")
            self._strategies[key] = strategy

    def unregister(self, metric_id: MetricId) -> None:
        for key in [k for k in self._strategies if k[0] == metric_id]:
            del self._strategies[key]

    def list_metrics(self, throttling_method: Optional[ThrottlingMethod] = None) -> List[MetricId]:
        """List metrics with a registered strategy, in ``MetricId`` order."""
        registered = {
            metric for metric, method in self._strategies
            if throttling_method is None or method == throttling_method
        }
        return [metric for metric in MetricId if metric in registered]

    def get_strategy(self, metric_id: Union[MetricId, str],
                     throttling_method: Union[ThrottlingMethod, str]) -> MetricStrategy:
        """Look up the strategy for a metric.

        Raises:
            UnknownMetricError: If the id is not a known metric or has no
                strategy for this throttling method
        """
        try:
            metric = MetricId(metric_id)
        except ValueError:
            raise UnknownMetricError(metric_id)
        method = ThrottlingMethod(throttling_method)

        strategy = self._strategies.get((metric, method))
        if strategy is None:
            raise UnknownMetricError(metric, method)
        return strategy

    async def compute(self, metric_id: Union[MetricId, str], trace: Trace,
                      devtools_log: DevtoolsLog, throttling_method: ThrottlingMethod,
                      context) -> Optional[Measurement]:
        """Compute a metric directly, without memoizing the metric itself."""
        strategy = self.get_strategy(metric_id, throttling_method)
        inputs = MetricInputs(trace, devtools_log, ThrottlingMethod(throttling_method))
        measurement = await strategy.compute(inputs, context, self)
        if measurement is None:
            logger.debug(f"Metric {strategy.metric_id.value} not computable under {inputs.throttling_method.value}")
        return measurement

    @staticmethod
    def cache_key(metric_id: MetricId, inputs: MetricInputs) -> Hashable:
        return (
            "metric",
            metric_id.value,
            id(inputs.trace),
            id(inputs.devtools_log),
            inputs.throttling_method.value
        )

    async def request(self, metric_id: Union[MetricId, str], inputs: MetricInputs,
                      context) -> Optional[Measurement]:
        """Get a metric through the run's computed cache."""
        strategy = self.get_strategy(metric_id, inputs.throttling_method)
        key = self.cache_key(strategy.metric_id, inputs)
        return await context.computed_cache.get_or_compute(
            key,
            lambda: self.compute(
                strategy.metric_id,
                inputs.trace,
                inputs.devtools_log,
                inputs.throttling_method,
                context
            ),
            keep_alive=(inputs.trace, inputs.devtools_log)
        )
