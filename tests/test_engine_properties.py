"""
Property-based tests for the health engine.

Uses Hypothesis for property-based testing to verify how probe outcomes are
folded into records, the in-flight guard of batch checks, failure handling
and the suggestion flow.
"""

import asyncio
from datetime import datetime, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_health.config import ProbeConfig, SuggestionConfig
from domain_health.engine import THINKING_MESSAGE, HealthEngine
from domain_health.enums import DomainStatus, Outcome
from domain_health.exceptions import OracleUnavailableError
from domain_health.history import MAX_HISTORY_LENGTH
from domain_health.registry import DomainRegistry
from domain_health.suggestions import REQUEST_FAILED_MESSAGE, SuggestionService


FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_TIME


class ScriptedOracle:
    """Oracle answering from a fixed outcome, optionally gated by an event."""

    def __init__(self, outcome: Outcome = Outcome.HEALTHY, gate: asyncio.Event = None):
        self.outcome = outcome
        self.gate = gate
        self.calls: list[str] = []

    async def probe(self, url: str) -> Outcome:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        return self.outcome


class SequenceOracle:
    """Oracle returning outcomes from a list, in order."""

    def __init__(self, outcomes: list[Outcome]):
        self._outcomes = list(outcomes)

    async def probe(self, url: str) -> Outcome:
        return self._outcomes.pop(0)


class FailingOracle:
    async def probe(self, url: str) -> Outcome:
        raise ConnectionError("boom")


class SlowOracle:
    async def probe(self, url: str) -> Outcome:
        await asyncio.sleep(5)
        return Outcome.HEALTHY


class StubSuggestions:
    def __init__(self, text: str = "<ul><li>check DNS</li></ul>", error: Exception = None):
        self.text = text
        self.error = error
        self.calls: list[tuple] = []

    async def suggest(self, url: str, status: DomainStatus) -> str:
        self.calls.append((url, status))
        if self.error is not None:
            raise self.error
        return self.text


def make_engine(oracle, urls=("a.com",), **kwargs) -> tuple[HealthEngine, DomainRegistry]:
    config = kwargs.pop("config", ProbeConfig(timeout_seconds=None))
    registry = DomainRegistry()
    for url in urls:
        registry.add(url)
    engine = HealthEngine(
        registry=registry,
        oracle=oracle,
        config=config,
        clock=fixed_clock,
        **kwargs,
    )
    return engine, registry


class TestCheckOneProperty:
    """
    Property 7: A completed probe updates status, last_checked and the ledger together.
    """

    @given(outcome=st.sampled_from(list(Outcome)))
    @settings(max_examples=30)
    def test_outcome_is_applied_atomically(self, outcome: Outcome) -> None:
        engine, registry = make_engine(ScriptedOracle(outcome))
        record_id = registry.records[0].id

        asyncio.run(engine.check_one(record_id))

        record = registry.get(record_id)
        assert record.status is DomainStatus.from_outcome(outcome)
        assert record.last_checked == FIXED_TIME
        assert record.checking is False
        assert len(record.ledger) == 1
        assert record.ledger.latest.outcome is outcome
        assert record.ledger.latest.checked_at == record.last_checked

    @given(outcomes=st.lists(st.sampled_from(list(Outcome)), min_size=1, max_size=40))
    @settings(max_examples=50)
    def test_repeated_probes_fill_the_window(self, outcomes: list[Outcome]) -> None:
        engine, registry = make_engine(SequenceOracle(outcomes))
        record_id = registry.records[0].id

        async def run_test():
            for _ in outcomes:
                await engine.check_one(record_id)

        asyncio.run(run_test())

        record = registry.get(record_id)
        assert len(record.ledger) == min(len(outcomes), MAX_HISTORY_LENGTH)
        assert record.status is DomainStatus.from_outcome(outcomes[-1])

        window = list(reversed(outcomes))[:MAX_HISTORY_LENGTH]
        healthy = sum(1 for o in window if o is Outcome.HEALTHY)
        assert record.uptime_ratio() == healthy / len(window)

    def test_check_one_ignores_in_flight_flag(self) -> None:
        oracle = ScriptedOracle(Outcome.DOWN)
        engine, registry = make_engine(oracle)
        record_id = registry.records[0].id
        registry.update(record_id, checking=True)

        asyncio.run(engine.check_one(record_id))

        assert oracle.calls == ["a.com"]
        assert registry.get(record_id).status is DomainStatus.DOWN

    def test_check_one_by_record(self) -> None:
        engine, registry = make_engine(ScriptedOracle(Outcome.FLAGGED))
        asyncio.run(engine.check_one(registry.records[0]))
        assert registry.records[0].status is DomainStatus.FLAGGED

    def test_unknown_id_is_ignored(self) -> None:
        oracle = ScriptedOracle()
        engine, _ = make_engine(oracle)
        asyncio.run(engine.check_one(999))
        assert oracle.calls == []

    def test_completed_probe_clears_suggestions(self) -> None:
        engine, registry = make_engine(ScriptedOracle())
        record_id = registry.records[0].id
        registry.update(record_id, suggestions="old advice")

        asyncio.run(engine.check_one(record_id))

        assert registry.get(record_id).suggestions is None


class TestCheckAllProperty:
    """
    Property 8: A batch check never issues a second probe for a record in flight.
    """

    @given(
        count=st.integers(min_value=1, max_value=8),
        in_flight=st.sets(st.integers(min_value=0, max_value=7)),
    )
    @settings(max_examples=50)
    def test_in_flight_records_are_skipped(self, count: int, in_flight: set) -> None:
        oracle = ScriptedOracle(Outcome.HEALTHY)
        urls = [f"d{i}.com" for i in range(count)]
        engine, registry = make_engine(oracle, urls=urls)
        busy = {registry.records[i].id for i in in_flight if i < count}
        for record_id in busy:
            registry.update(record_id, checking=True)

        async def run_test():
            tasks = engine.check_all()
            await engine.wait_idle()
            return tasks

        tasks = asyncio.run(run_test())

        assert len(tasks) == count - len(busy)
        expected = [r.url for r in registry.records if r.id not in busy]
        assert sorted(oracle.calls) == sorted(expected)
        for record in registry.records:
            if record.id in busy:
                assert record.checking is True
                assert len(record.ledger) == 0
            else:
                assert record.status is DomainStatus.HEALTHY

    def test_records_marked_before_probes_run(self) -> None:
        gate = asyncio.Event()
        oracle = ScriptedOracle(Outcome.HEALTHY, gate=gate)
        engine, registry = make_engine(oracle, urls=["a.com", "b.com"])

        async def run_test():
            first = engine.check_all()
            states = [(r.status, r.checking) for r in registry.records]
            second = engine.check_all()
            gate.set()
            await engine.wait_idle()
            return first, second, states

        first, second, states = asyncio.run(run_test())

        assert len(first) == 2
        assert second == []
        assert states == [(DomainStatus.PENDING, True), (DomainStatus.PENDING, True)]
        assert len(oracle.calls) == 2

    def test_pending_tasks_counted(self) -> None:
        gate = asyncio.Event()
        engine, _ = make_engine(ScriptedOracle(gate=gate), urls=["a.com", "b.com"])

        async def run_test():
            engine.check_all()
            await asyncio.sleep(0)
            pending = engine.pending_tasks
            gate.set()
            await engine.wait_idle()
            return pending, engine.pending_tasks

        assert asyncio.run(run_test()) == (2, 0)


class TestProbeFailureProperty:
    """
    Property 9: A probe that fails or times out is recorded as down.
    """

    def test_oracle_error_records_down(self) -> None:
        engine, registry = make_engine(FailingOracle())
        record_id = registry.records[0].id

        asyncio.run(engine.check_one(record_id))

        record = registry.get(record_id)
        assert record.status is DomainStatus.DOWN
        assert record.checking is False
        assert record.ledger.latest.outcome is Outcome.DOWN

    def test_timeout_records_down(self) -> None:
        engine, registry = make_engine(SlowOracle(), config=ProbeConfig(timeout_seconds=0.05))
        record_id = registry.records[0].id

        asyncio.run(engine.check_one(record_id))

        record = registry.get(record_id)
        assert record.status is DomainStatus.DOWN
        assert record.checking is False

    def test_cancelled_probe_restores_previous_status(self) -> None:
        gate = asyncio.Event()
        engine, registry = make_engine(ScriptedOracle(gate=gate))
        record_id = registry.records[0].id
        registry.update(record_id, status=DomainStatus.FLAGGED)

        async def run_test():
            task = engine.start_check(record_id)
            await asyncio.sleep(0)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        asyncio.run(run_test())

        record = registry.get(record_id)
        assert record.status is DomainStatus.FLAGGED
        assert record.checking is False
        assert len(record.ledger) == 0


class TestLateResultsProperty:
    """
    Property 10: Results arriving after teardown or removal are discarded.
    """

    def test_result_after_close_is_discarded(self) -> None:
        gate = asyncio.Event()
        engine, registry = make_engine(ScriptedOracle(gate=gate))
        record_id = registry.records[0].id

        async def run_test():
            engine.check_all()
            await asyncio.sleep(0)
            engine.close()
            gate.set()
            await engine.wait_idle()

        asyncio.run(run_test())

        record = registry.get(record_id)
        assert len(record.ledger) == 0
        assert record.last_checked is None
        assert engine.closed is True

    def test_closed_engine_starts_nothing(self) -> None:
        oracle = ScriptedOracle()
        engine, _ = make_engine(oracle)
        engine.close()

        async def run_test():
            return engine.check_all(), engine.start_check(1)

        assert asyncio.run(run_test()) == ([], None)
        assert oracle.calls == []

    def test_result_for_removed_record_is_discarded(self) -> None:
        gate = asyncio.Event()
        engine, registry = make_engine(ScriptedOracle(gate=gate), urls=["a.com", "b.com"])
        removed_id = registry.records[0].id

        async def run_test():
            engine.check_all()
            await asyncio.sleep(0)
            registry.remove(removed_id)
            gate.set()
            await engine.wait_idle()

        asyncio.run(run_test())

        assert registry.get(removed_id) is None
        assert [r.url for r in registry.records] == ["b.com"]
        assert registry.records[0].status is DomainStatus.HEALTHY


class TestSuggestionFlow:
    """Suggestions are stored on the record, errors included."""

    def test_suggestion_text_is_stored(self) -> None:
        service = StubSuggestions()
        engine, registry = make_engine(ScriptedOracle(), suggestion_service=service)
        record_id = registry.records[0].id
        registry.update(record_id, status=DomainStatus.DOWN)

        text = asyncio.run(engine.fetch_suggestions(record_id))

        assert text == service.text
        assert registry.get(record_id).suggestions == service.text
        assert service.calls == [("a.com", DomainStatus.DOWN)]
        assert engine.loading_suggestions is False

    def test_thinking_placeholder_while_waiting(self) -> None:
        seen = []

        class ObservingService:
            async def suggest(self, url, status):
                seen.append((registry.get(record_id).suggestions, engine.loading_suggestions))
                return "done"

        engine, registry = make_engine(ScriptedOracle(), suggestion_service=ObservingService())
        record_id = registry.records[0].id
        asyncio.run(engine.fetch_suggestions(record_id))

        assert seen == [(THINKING_MESSAGE, True)]

    def test_service_error_is_stored_as_text(self) -> None:
        service = StubSuggestions(error=OracleUnavailableError(code="request_failed", message="API down"))
        engine, registry = make_engine(ScriptedOracle(), suggestion_service=service)
        record_id = registry.records[0].id

        text = asyncio.run(engine.fetch_suggestions(record_id))

        assert text == "Error: API down"
        assert registry.get(record_id).suggestions == "Error: API down"

    def test_unexpected_service_error_is_stored_as_text(self) -> None:
        service = StubSuggestions(error=RuntimeError("service crashed"))
        engine, registry = make_engine(ScriptedOracle(), suggestion_service=service)
        record_id = registry.records[0].id

        text = asyncio.run(engine.fetch_suggestions(record_id))

        assert text == "Error: service crashed"
        assert registry.get(record_id).suggestions == "Error: service crashed"
        assert engine.loading_suggestions is False

    def test_misconfigured_endpoint_is_stored_as_error(self) -> None:
        service = SuggestionService(
            SuggestionConfig(api_key="k", endpoint="https://exa mple.com\x00")
        )
        engine, registry = make_engine(ScriptedOracle(), suggestion_service=service)
        record_id = registry.records[0].id
        registry.update(record_id, status=DomainStatus.DOWN)

        text = asyncio.run(engine.fetch_suggestions(record_id))

        assert text == f"Error: {REQUEST_FAILED_MESSAGE}"
        assert registry.get(record_id).suggestions == text

    def test_missing_service_is_stored_as_error(self) -> None:
        engine, registry = make_engine(ScriptedOracle())
        record_id = registry.records[0].id

        text = asyncio.run(engine.fetch_suggestions(record_id))

        assert text.startswith("Error: ")
        assert registry.get(record_id).suggestions == text
