import json
import asyncio

import httpx
import pytest

from conftest import RecordingAdapter, make_relational, make_tabular
from relay.adapters import build_adapter
from relay.exceptions import AuthorizationError, ConfigurationError, DestinationUnreachable, TransportError
from relay.services.dispatcher import Dispatcher
from relay.services.flatten import flatten_payload

PAYLOAD = {"user": {"name": "Ann", "email": "a@x.com"}}
MAPPINGS = [("user.name", "Name"), ("user.email", "Email")]


@pytest.mark.asyncio
async def test_no_destinations_is_a_noop(dispatcher, log_store, retry_scheduler):
    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert results == []
    assert log_store.rows == {}
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_disabled_destinations_are_skipped(dispatcher, config_store, log_store, adapters):
    config_store.add(make_tabular("dest-off"), MAPPINGS, enabled=False)

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert results == []
    assert log_store.rows == {}
    assert "dest-off" not in adapters


@pytest.mark.asyncio
async def test_successful_delivery_logs_once(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), MAPPINGS)

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert results[0]["success"] is True
    assert adapters["dest-1"].calls == [{"Name": "Ann", "Email": "a@x.com"}]
    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "success"
    assert row["retry_count"] == 0
    assert row["error_message"] is None
    assert row["payload"] == PAYLOAD
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_zero_mappings_fails_without_adapter_call(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), mappings=[])
    adapters["dest-1"] = RecordingAdapter()

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert adapters["dest-1"].calls == []
    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "failed"
    assert row["retry_count"] == 0
    assert "No field mappings configured" in row["error_message"]
    assert results[0]["retry_scheduled"] is False
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_zero_mappings_does_not_block_siblings(dispatcher, config_store, log_store):
    config_store.add(make_tabular("dest-empty"), mappings=[])
    config_store.add(make_tabular("dest-ok"), MAPPINGS)

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert log_store.for_destination("dest-empty")[0]["status"] == "failed"
    assert log_store.for_destination("dest-ok")[0]["status"] == "success"


@pytest.mark.asyncio
async def test_mapping_read_failure_still_logs_one_row(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-bad"), MAPPINGS)
    config_store.add(make_tabular("dest-ok"), MAPPINGS)
    config_store.mapping_errors["dest-bad"] = RuntimeError("db read failed")

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert len(log_store.rows) == 2
    (row,) = log_store.for_destination("dest-bad")
    assert row["status"] == "failed"
    assert row["retry_count"] == 0
    assert "db read failed" in row["error_message"]
    assert log_store.for_destination("dest-ok")[0]["status"] == "success"
    assert "dest-bad" not in adapters
    by_id = {r["destination_id"]: r for r in results}
    assert by_id["dest-bad"]["log_id"] == row["id"]
    assert by_id["dest-bad"]["retry_scheduled"] is False
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_one_failing_destination_is_isolated(dispatcher, config_store, log_store, adapters):
    for i in range(5):
        config_store.add(make_tabular(f"dest-{i}"), MAPPINGS)
    adapters["dest-2"] = RecordingAdapter(always=TransportError("HTTP 500"))

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert len(results) == 5
    assert len(log_store.rows) == 5
    statuses = {r["destination_id"]: r["status"] for r in log_store.rows.values()}
    assert statuses.pop("dest-2") == "failed"
    assert set(statuses.values()) == {"success"}


@pytest.mark.asyncio
async def test_unexpected_adapter_exception_is_isolated_and_retried(
    dispatcher, config_store, log_store, adapters, retry_scheduler
):
    config_store.add(make_tabular("dest-boom"), MAPPINGS)
    config_store.add(make_tabular("dest-ok"), MAPPINGS)
    adapters["dest-boom"] = RecordingAdapter(outcomes=[RuntimeError("kaboom")])

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    (row,) = log_store.for_destination("dest-boom")
    assert row["status"] == "failed"
    assert row["error_message"] == "kaboom"
    assert log_store.for_destination("dest-ok")[0]["status"] == "success"
    assert len(retry_scheduler.pending) == 1


@pytest.mark.asyncio
async def test_retry_success_updates_same_row(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), MAPPINGS)
    adapters["dest-1"] = RecordingAdapter(outcomes=[TransportError("Appending row failed: HTTP 503"), None])

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert results[0]["retry_scheduled"] is True
    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "failed"
    assert row["retry_count"] == 0
    job, delay = retry_scheduler.pending[0]
    assert delay == 5
    assert job.log_id == row["id"]

    ran = await retry_scheduler.run_pending(dispatcher.retry)

    assert ran == 1
    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "success"
    assert row["retry_count"] == 1
    assert row["error_message"] is None
    assert adapters["dest-1"].calls == [{"Name": "Ann", "Email": "a@x.com"}] * 2


@pytest.mark.asyncio
async def test_retry_failure_records_second_error(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), MAPPINGS)
    adapters["dest-1"] = RecordingAdapter(
        outcomes=[TransportError("first failure"), DestinationUnreachable("second failure")]
    )

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)
    await retry_scheduler.run_pending(dispatcher.retry)

    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "failed"
    assert row["retry_count"] == 1
    assert row["error_message"] == "second failure"
    assert len(adapters["dest-1"].calls) == 2
    # Exactly one retry, never more
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_retry_reuses_resolved_record(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), MAPPINGS)
    adapters["dest-1"] = RecordingAdapter(outcomes=[TransportError("down"), None])

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)
    # Mappings changing between attempts must not affect the retry
    config_store.add(make_tabular("dest-1"), [("user.name", "Other")])
    await retry_scheduler.run_pending(dispatcher.retry)

    assert adapters["dest-1"].calls[1] == {"Name": "Ann", "Email": "a@x.com"}


@pytest.mark.asyncio
async def test_authorization_errors_are_retried(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_relational("dest-1"), [("user.email", "email")])
    adapters["dest-1"] = RecordingAdapter(outcomes=[AuthorizationError("HTTP 401", status_code=401), None])

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert len(retry_scheduler.pending) == 1


@pytest.mark.asyncio
async def test_missing_credentials_fail_and_retry(dispatcher, config_store, log_store, adapters, retry_scheduler):
    config_store.add(make_tabular("dest-1"), MAPPINGS)
    config_store.missing_credentials.add("dest-1")

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "failed"
    assert row["error_message"] == "Google not connected"
    assert len(retry_scheduler.pending) == 1
    assert "dest-1" not in adapters


@pytest.mark.asyncio
async def test_configuration_errors_from_adapter_are_not_retried(
    dispatcher, config_store, log_store, adapters, retry_scheduler
):
    config_store.add(make_tabular("dest-1"), MAPPINGS)
    adapters["dest-1"] = RecordingAdapter(always=ConfigurationError("Unsupported destination type"))

    await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    assert log_store.for_destination("dest-1")[0]["status"] == "failed"
    assert retry_scheduler.pending == []


@pytest.mark.asyncio
async def test_log_store_failure_for_one_destination_does_not_abort_others(config_store, retry_scheduler):
    class FlakyLogStore:
        def __init__(self):
            self.created = []

        async def create_log(self, webhook_id, destination_id, payload, status, error_message=None):
            if destination_id == "dest-bad":
                raise RuntimeError("database unavailable")
            self.created.append(destination_id)
            return f"log-{destination_id}"

        async def record_retry(self, log_id, success, error_message=None):
            pass

    log_store = FlakyLogStore()
    config_store.add(make_tabular("dest-bad"), MAPPINGS)
    config_store.add(make_tabular("dest-good"), MAPPINGS)
    dispatcher = Dispatcher(
        config_store=config_store,
        log_store=log_store,
        adapter_factory=lambda d, c: RecordingAdapter(),
        retry_scheduler=retry_scheduler,
    )

    results = await dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD)

    by_id = {r["destination_id"]: r for r in results}
    assert by_id["dest-bad"]["success"] is False
    assert "database unavailable" in by_id["dest-bad"]["error"]
    assert by_id["dest-good"]["success"] is True
    assert log_store.created == ["dest-good"]


@pytest.mark.asyncio
async def test_destinations_are_written_concurrently(config_store, log_store, retry_scheduler):
    """Each adapter waits until all have started; serial delivery would deadlock."""
    count = 3
    started = 0
    all_started = asyncio.Event()

    class BarrierAdapter:
        async def write(self, destination, record):
            nonlocal started
            started += 1
            if started == count:
                all_started.set()
            await all_started.wait()

    for i in range(count):
        config_store.add(make_tabular(f"dest-{i}"), MAPPINGS)
    dispatcher = Dispatcher(
        config_store=config_store,
        log_store=log_store,
        adapter_factory=lambda d, c: BarrierAdapter(),
        retry_scheduler=retry_scheduler,
    )

    results = await asyncio.wait_for(
        dispatcher.dispatch("wh-1", flatten_payload(PAYLOAD), PAYLOAD),
        timeout=2,
    )

    assert [r["success"] for r in results] == [True] * count


@pytest.mark.asyncio
async def test_end_to_end_tabular_delivery(config_store, log_store, retry_scheduler):
    appended = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer token-dest-1"
        if request.method == "GET":
            return httpx.Response(200, json={"values": [["Name", "Email"]]})
        appended.append(request)
        return httpx.Response(200, json={"updates": {"updatedRows": 1}})

    config_store.add(make_tabular("dest-1"), MAPPINGS)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        dispatcher = Dispatcher(
            config_store=config_store,
            log_store=log_store,
            adapter_factory=lambda d, c: build_adapter(d, c, http),
            retry_scheduler=retry_scheduler,
        )
        payload = {"user": {"name": "Ann", "email": "a@x.com"}}
        await dispatcher.dispatch("wh-1", flatten_payload(payload), payload)

    assert len(appended) == 1
    assert json.loads(appended[0].content) == {"values": [["Ann", "a@x.com"]]}
    (row,) = log_store.for_destination("dest-1")
    assert row["status"] == "success"
    assert row["retry_count"] == 0
    assert retry_scheduler.pending == []
