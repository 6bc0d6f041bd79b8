"""Unit tests for metric strategies and the metric registry."""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pageaudit.audit.computed.processed_trace import PaintSample, TaskSpan, process_trace
from pageaudit.audit.errors import UnknownMetricError
from pageaudit.audit.metrics import (
    MetricInputs,
    MetricRegistry,
    MetricStrategy,
    create_metric_registry,
    find_quiet_window,
    network_busy_periods,
    risk_to_responsiveness,
    speed_index,
)
from pageaudit.audit.computed.network_records import records_from_devtools_log
from pageaudit.audit.models import (
    MetricId,
    ScalarMeasurement,
    StructuredMeasurement,
    ThrottlingMethod,
)


@pytest.fixture
def registry():
    return create_metric_registry()


async def compute(registry, metric, trace, log, context, method=ThrottlingMethod.DEVTOOLS):
    return await registry.compute(metric, trace, log, method, context)


class TestRiskToResponsiveness:
    """Test cases for the input latency percentile."""

    def test_idle_covers_percentile(self):
        assert risk_to_responsiveness([100, 100], 5000) == 0.0

    def test_latency_inside_longest_task(self):
        # idle 500 + min(w, 100) + min(w, 400) = 900 at w = 300
        assert risk_to_responsiveness([100, 400], 1000) == pytest.approx(300)

    def test_single_task_filling_window(self):
        assert risk_to_responsiveness([1000], 1000) == pytest.approx(900)

    def test_empty_window(self):
        assert risk_to_responsiveness([], 0) == 0.0


class TestSpeedIndex:
    """Test cases for the visual progress integral."""

    def test_speed_index(self):
        paints = [PaintSample(500, 10_000), PaintSample(800, 10_000), PaintSample(1200, 20_000)]
        assert speed_index(paints) == pytest.approx(925)

    def test_single_paint(self):
        assert speed_index([PaintSample(700, 50)]) == pytest.approx(700)

    def test_no_paints(self):
        assert speed_index([]) is None


class TestQuietWindow:
    """Test cases for the quiet window search."""

    def test_window_after_last_long_task(self):
        tasks = [TaskSpan(900, 1020), TaskSpan(1500, 1580)]
        assert find_quiet_window(tasks, 500, 10_000) == pytest.approx(1580)

    def test_trace_too_short(self):
        tasks = [TaskSpan(900, 1020)]
        assert find_quiet_window(tasks, 500, 5_000) is None

    def test_network_busy_pushes_window(self, standard_trace, devtools_log_from):
        processed = process_trace(standard_trace)
        records = records_from_devtools_log(devtools_log_from([
            {"url": "https://a.com/1", "start": 10.0, "end": 12.0},
            {"url": "https://a.com/2", "start": 10.1, "end": 12.0},
            {"url": "https://a.com/3", "start": 10.2, "end": 12.5},
        ]))

        periods = network_busy_periods(records, processed)

        assert len(periods) == 1
        assert periods[0].start == pytest.approx(200)
        assert periods[0].end == pytest.approx(2000)
        assert find_quiet_window([], 500, 10_000, busy_periods=periods) == pytest.approx(2000)

    def test_two_requests_are_not_busy(self, standard_trace, quiet_devtools_log):
        processed = process_trace(standard_trace)
        records = records_from_devtools_log(quiet_devtools_log)

        assert network_busy_periods(records, processed) == []

    def test_unfinished_requests_busy_until_trace_end(self, standard_trace, devtools_log_from):
        processed = process_trace(standard_trace)
        records = records_from_devtools_log(devtools_log_from([
            {"url": f"https://a.com/{i}", "start": 10.5, "end": None} for i in range(3)
        ]))

        periods = network_busy_periods(records, processed)

        assert periods[0].end == pytest.approx(processed.trace_end)


class TestMetricStrategies:
    """Test cases for each built-in strategy on the standard page."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("metric,expected", [
        (MetricId.FIRST_CONTENTFUL_PAINT, 500),
        (MetricId.FIRST_MEANINGFUL_PAINT, 800),
        (MetricId.INTERACTIVE, 1580),
        (MetricId.FIRST_CPU_IDLE, 1580),
        (MetricId.TOTAL_BLOCKING_TIME, 100),
        (MetricId.MAX_POTENTIAL_FID, 120),
        (MetricId.ESTIMATED_INPUT_LATENCY, 16),
        (MetricId.SPEED_INDEX, 925),
    ])
    async def test_scalar_metrics(self, registry, standard_trace, quiet_devtools_log, run_context,
                                  metric, expected):
        measurement = await compute(registry, metric, standard_trace, quiet_devtools_log, run_context)

        assert isinstance(measurement, ScalarMeasurement)
        assert measurement.numeric_value == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_largest_contentful_paint(self, registry, lcp_trace, quiet_devtools_log, make_context):
        context = make_context(throttling_method="provided")

        measurement = await compute(registry, MetricId.LARGEST_CONTENTFUL_PAINT, lcp_trace,
                                    quiet_devtools_log, context, ThrottlingMethod.PROVIDED)

        assert measurement.numeric_value == pytest.approx(1121.711)

    @pytest.mark.asyncio
    async def test_largest_contentful_paint_missing(self, registry, standard_trace, quiet_devtools_log,
                                                    run_context):
        measurement = await compute(registry, MetricId.LARGEST_CONTENTFUL_PAINT, standard_trace,
                                    quiet_devtools_log, run_context)

        assert measurement is None

    @pytest.mark.asyncio
    async def test_cumulative_layout_shift_is_structured(self, registry, standard_builder,
                                                         quiet_devtools_log, run_context):
        trace = (
            standard_builder()
            .layout_shift(600, 0.1)
            .layout_shift(700, 0.05)
            .layout_shift(900, 0.4, had_recent_input=True)
            .build()
        )

        measurement = await compute(registry, MetricId.CUMULATIVE_LAYOUT_SHIFT, trace,
                                    quiet_devtools_log, run_context)

        assert isinstance(measurement, StructuredMeasurement)
        assert measurement.numeric_value == pytest.approx(0.15)
        assert measurement.report_value() == {"value": pytest.approx(0.15), "shiftCount": 2}

    @pytest.mark.asyncio
    async def test_cumulative_layout_shift_zero(self, registry, standard_trace, quiet_devtools_log,
                                                run_context):
        measurement = await compute(registry, MetricId.CUMULATIVE_LAYOUT_SHIFT, standard_trace,
                                    quiet_devtools_log, run_context)

        assert measurement.numeric_value == 0

    @pytest.mark.asyncio
    async def test_estimated_input_latency_with_busy_window(self, registry, trace_builder,
                                                            quiet_devtools_log, run_context):
        trace = (
            trace_builder()
            .mark("firstContentfulPaint", 100)
            .mark("firstMeaningfulPaint", 1000)
            .task(1000, 4000)
            .end(10_000)
            .build()
        )

        measurement = await compute(registry, MetricId.ESTIMATED_INPUT_LATENCY, trace,
                                    quiet_devtools_log, run_context)

        # idle 1000 + min(w, 4000) = 4500 at w = 3500
        assert measurement.numeric_value == pytest.approx(3516)

    @pytest.mark.asyncio
    async def test_max_potential_fid_floor(self, registry, trace_builder, quiet_devtools_log, run_context):
        trace = trace_builder().mark("firstContentfulPaint", 100).task(50, 500).end(10_000).build()

        measurement = await compute(registry, MetricId.MAX_POTENTIAL_FID, trace,
                                    quiet_devtools_log, run_context)

        assert measurement.numeric_value == 16

    @pytest.mark.asyncio
    @pytest.mark.parametrize("metric", [
        MetricId.FIRST_CONTENTFUL_PAINT,
        MetricId.INTERACTIVE,
        MetricId.TOTAL_BLOCKING_TIME,
        MetricId.ESTIMATED_INPUT_LATENCY,
        MetricId.SPEED_INDEX,
    ])
    async def test_not_computable_without_paints(self, registry, trace_builder, quiet_devtools_log,
                                                 run_context, metric):
        trace = trace_builder().end(10_000).build()

        assert await compute(registry, metric, trace, quiet_devtools_log, run_context) is None

    @pytest.mark.asyncio
    async def test_interactive_needs_quiet_network(self, registry, standard_trace, devtools_log_from,
                                                   run_context):
        busy_log = devtools_log_from([
            {"url": f"https://a.com/{i}", "start": 10.5, "end": None} for i in range(3)
        ])

        measurement = await compute(registry, MetricId.INTERACTIVE, standard_trace, busy_log, run_context)

        assert measurement is None


class TestMetricRegistry:
    """Test cases for strategy registration and lookup."""

    def test_all_metrics_registered(self, registry):
        for method in ThrottlingMethod:
            assert registry.list_metrics(method) == list(MetricId)

    def test_unknown_metric_id(self, registry):
        with pytest.raises(UnknownMetricError, match="Unknown metric 'time-to-coffee'"):
            registry.get_strategy("time-to-coffee", ThrottlingMethod.DEVTOOLS)

    def test_unregistered_metric(self, registry):
        registry.unregister(MetricId.SPEED_INDEX)

        with pytest.raises(UnknownMetricError, match="speed-index"):
            registry.get_strategy(MetricId.SPEED_INDEX, ThrottlingMethod.DEVTOOLS)
        assert MetricId.SPEED_INDEX not in registry.list_metrics()

    @pytest.mark.asyncio
    async def test_strategy_replacement(self, registry, standard_trace, quiet_devtools_log, run_context):
        class FixedSpeedIndex(MetricStrategy):
            metric_id = MetricId.SPEED_INDEX

            async def compute(self, inputs, context, registry):
                return self.scalar(1234)

        registry.register(FixedSpeedIndex(), methods=[ThrottlingMethod.PROVIDED])

        provided = await compute(registry, MetricId.SPEED_INDEX, standard_trace, quiet_devtools_log,
                                 run_context, ThrottlingMethod.PROVIDED)
        observed = await compute(registry, MetricId.SPEED_INDEX, standard_trace, quiet_devtools_log,
                                 run_context, ThrottlingMethod.DEVTOOLS)

        assert provided.numeric_value == 1234
        assert observed.numeric_value == pytest.approx(925)

    @pytest.mark.asyncio
    async def test_request_memoizes_metric(self, standard_trace, quiet_devtools_log, run_context):
        calls = []

        class CountingFcp(MetricStrategy):
            metric_id = MetricId.FIRST_CONTENTFUL_PAINT

            async def compute(self, inputs, context, registry):
                calls.append(1)
                return self.scalar(1)

        registry = MetricRegistry()
        registry.register(CountingFcp())
        inputs = MetricInputs(standard_trace, quiet_devtools_log, ThrottlingMethod.DEVTOOLS)

        await registry.request(MetricId.FIRST_CONTENTFUL_PAINT, inputs, run_context)
        await registry.request("first-contentful-paint", inputs, run_context)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_dependent_metric_shares_interactive(self, registry, standard_trace, quiet_devtools_log,
                                                       run_context):
        """TBT reuses the cached TTI instead of recomputing it."""
        inputs = MetricInputs(standard_trace, quiet_devtools_log, ThrottlingMethod.DEVTOOLS)

        await registry.request(MetricId.INTERACTIVE, inputs, run_context)
        misses_before = run_context.computed_cache.stats.misses
        await registry.request(MetricId.TOTAL_BLOCKING_TIME, inputs, run_context)

        # Only TBT itself is new: TTI, the processed trace and records are cached.
        assert run_context.computed_cache.stats.misses == misses_before + 1
