from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import pytest

from errorscrub import Reporter, ReporterOptions
from errorscrub.detectors import REDACTION_TOKEN, DetectorSet
from errorscrub.errors import (
    ConfigError,
    GlobalBindingError,
    LifecycleError,
    PreconditionError,
)
from errorscrub.sinks import RecordingSubscriber


class RangeError(ValueError):
    pass


def name_and_message() -> tuple[str, ...]:
    return ("name", "message")


class CountingDetectors(DetectorSet):
    """Detector double that counts every detection/redaction call."""

    def __init__(self, sensitive: bool = False) -> None:
        super().__init__([])
        self.sensitive = sensitive
        self.calls = 0

    def is_sensitive(self, text: str) -> bool:
        self.calls += 1
        return self.sensitive

    def sanitize(self, text: str) -> str:
        self.calls += 1
        return REDACTION_TOKEN


def make_reporter(purge: object = "strict", **kwargs) -> Reporter:
    kwargs.setdefault("properties", name_and_message)
    return Reporter({"purge": purge}, **kwargs)


# ── construction ─────────────────────────────────────────────────


def test_defaults():
    reporter = Reporter()
    assert reporter.options.purge == "strict"
    assert reporter.state.subscribers == []
    assert reporter.state.subscriber_count == 0
    assert reporter.is_alive is True


def test_user_options_merge_over_defaults():
    assert Reporter({"purge": "loose"}).options.purge == "loose"
    assert Reporter(ReporterOptions(purge=False)).options.purge is False


@pytest.mark.parametrize("falsy", [False, None, 0, ""])
def test_falsy_purge_behaves_as_false(falsy):
    assert Reporter({"purge": falsy}).options.purge is False


def test_unknown_purge_is_rejected():
    with pytest.raises(ConfigError):
        Reporter({"purge": "medium"})


def test_unknown_option_keys_are_kept_read_only():
    reporter = Reporter({"colour": "red", "purge": "loose"})
    assert reporter.options.purge == "loose"
    assert reporter.options.extra == {"colour": "red"}
    with pytest.raises(TypeError):
        reporter.options.extra["colour"] = "blue"  # type: ignore[index]
    assert "colour" not in Reporter().options.extra


def test_options_are_read_only():
    reporter = Reporter()
    with pytest.raises(dataclasses.FrozenInstanceError):
        reporter.options.purge = "loose"  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        reporter.options.extra = {}  # type: ignore[misc]
    with pytest.raises(AttributeError):
        reporter.options = ReporterOptions(purge=False)  # type: ignore[misc]
    assert reporter.options.purge == "strict"


def test_from_config_path(tmp_path):
    cfg = tmp_path / "errorscrub.yaml"
    cfg.write_text("reporter:\n  purge: loose\n")
    assert Reporter.from_config_path(cfg).options.purge == "loose"


def test_class_level_detection():
    assert Reporter.is_sensitive("api_key=abc123")
    assert not Reporter.is_sensitive("division by zero")
    assert Reporter.sanitize("password: hunter2") == REDACTION_TOKEN
    with pytest.raises(PreconditionError):
        Reporter.sanitize(None)  # type: ignore[arg-type]


# ── subscribers ──────────────────────────────────────────────────


def test_subscribe_appends_and_counts():
    reporter = Reporter()
    handler = RecordingSubscriber()
    reporter.subscribe(handler)
    assert reporter.state.subscribers == [handler]
    assert reporter.subscriber_count == 1


def test_subscribe_rejects_non_callables():
    with pytest.raises(PreconditionError, match="must be callable"):
        Reporter().subscribe("not a function")  # type: ignore[arg-type]


def test_subscribe_then_unsubscribe_restores_state():
    reporter = Reporter()
    reporter.subscribe(RecordingSubscriber())
    before = (len(reporter.state.subscribers), reporter.subscriber_count)
    reporter.subscribe(RecordingSubscriber())()
    assert (len(reporter.state.subscribers), reporter.subscriber_count) == before


def test_unsubscribe_twice_is_a_no_op():
    reporter = Reporter()
    keep = RecordingSubscriber()
    drop = reporter.subscribe(RecordingSubscriber())
    reporter.subscribe(keep)
    drop()
    drop()
    assert reporter.state.subscribers == [keep]
    assert reporter.subscriber_count == 1


def test_stale_handle_never_removes_another_subscriber():
    reporter = Reporter()
    a, b, c = RecordingSubscriber(), RecordingSubscriber(), RecordingSubscriber()
    unsub_a = reporter.subscribe(a)
    unsub_b = reporter.subscribe(b)
    reporter.subscribe(c)
    unsub_a()
    unsub_b()
    assert reporter.state.subscribers == [c]
    assert reporter.subscriber_count == len(reporter.state.subscribers)


def test_duplicate_handlers_are_removed_one_at_a_time():
    reporter = Reporter()
    handler = RecordingSubscriber()
    first = reporter.subscribe(handler)
    reporter.subscribe(handler)
    first()
    assert reporter.state.subscribers == [handler]


# ── report pipeline ──────────────────────────────────────────────


def test_report_delivers_to_every_subscriber_in_order():
    reporter = make_reporter()
    order: list[str] = []
    reporter.subscribe(lambda payload: order.append("first"))
    reporter.subscribe(lambda payload: order.append("second"))
    reporter.report(ValueError("disk full"))
    assert order == ["first", "second"]


def test_clean_error_is_delivered_in_full():
    reporter = make_reporter()
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(TypeError("unsupported operand"))
    assert sink.payloads == [{"name": "TypeError", "message": "unsupported operand"}]


def test_strict_drops_sensitive_errors():
    reporter = make_reporter("strict")
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(RangeError("password: hunter2"))
    assert sink.payloads == []


def test_loose_redacts_every_property():
    reporter = make_reporter("loose")
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(RangeError("password: hunter2"))
    assert sink.payloads == [{"name": "RangeError", "message": REDACTION_TOKEN}]


def test_loose_redaction_covers_every_property_with_detector_double():
    detectors = CountingDetectors(sensitive=True)
    reporter = make_reporter("loose", detectors=detectors)
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(ValueError("api_key=1"))
    assert sink.payloads == [{"name": REDACTION_TOKEN, "message": REDACTION_TOKEN}]


def test_purge_false_delivers_raw_values():
    reporter = make_reporter(False)
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(RangeError("password: hunter2"))
    assert sink.payloads == [{"name": "RangeError", "message": "password: hunter2"}]


def test_one_payload_per_subscriber():
    reporter = make_reporter("loose")
    sinks = [RecordingSubscriber(), RecordingSubscriber()]
    for sink in sinks:
        reporter.subscribe(sink)
    reporter.report(RangeError("password: hunter2"))
    assert [len(sink.payloads) for sink in sinks] == [1, 1]


def test_no_subscribers_means_no_detection_work():
    detectors = CountingDetectors(sensitive=True)
    reporter = make_reporter("loose", detectors=detectors)
    reporter.report(ValueError("api_key=1"))
    assert detectors.calls == 0
    reporter.subscribe(RecordingSubscriber())
    reporter.report(ValueError("api_key=1"))
    assert detectors.calls > 0


def test_metadata_wins_over_error_properties():
    reporter = make_reporter()
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(ValueError("disk full"), {"message": "overridden", "source": "job.py"})
    assert sink.last == {"name": "ValueError", "message": "overridden", "source": "job.py"}


def test_raw_values_keep_their_type():
    reporter = Reporter({"purge": False}, properties=lambda: ("name", "code"))
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(SystemExit(3))
    assert sink.last == {"name": "SystemExit", "code": 3}


def test_duck_typed_errors_are_accepted():
    reporter = make_reporter()
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.report(SimpleNamespace(name="FetchError", message="timeout"))
    assert sink.last == {"name": "FetchError", "message": "timeout"}


@pytest.mark.parametrize("value", ["boom", None, {"name": "X", "message": "y"}])
def test_report_rejects_values_that_are_not_errors(value):
    reporter = make_reporter()
    reporter.subscribe(RecordingSubscriber())
    with pytest.raises(PreconditionError, match="report expected an error object"):
        reporter.report(value)


def test_default_properties_include_the_stack():
    reporter = Reporter({"purge": False})
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    try:
        raise ValueError("disk full")
    except ValueError as exc:
        reporter.report(exc)
    assert "ValueError: disk full" in sink.last["stack"]


def test_subscriber_fault_aborts_remaining_deliveries():
    reporter = make_reporter()
    later = RecordingSubscriber()

    def broken(payload):
        raise RuntimeError("subscriber failed")

    reporter.subscribe(broken)
    reporter.subscribe(later)
    with pytest.raises(RuntimeError, match="subscriber failed"):
        reporter.report(ValueError("disk full"))
    assert later.payloads == []


def test_unsubscribing_during_delivery_uses_snapshot():
    reporter = make_reporter()
    later = RecordingSubscriber()
    handles = {}

    def first(payload):
        handles["later"]()

    reporter.subscribe(first)
    handles["later"] = reporter.subscribe(later)
    reporter.report(ValueError("disk full"))
    assert len(later.payloads) == 1
    assert reporter.subscriber_count == 1


# ── lifecycle ────────────────────────────────────────────────────


def test_terminate_resets_state():
    reporter = Reporter()
    reporter.subscribe(RecordingSubscriber())
    reporter.terminate()
    assert reporter.state.alive is False
    assert reporter.state.subscribers == []
    assert reporter.state.subscriber_count == 0
    reporter.terminate()
    assert reporter.is_alive is False


@pytest.mark.parametrize(
    "operation",
    [
        lambda r: r.subscribe(print),
        lambda r: r.report(ValueError("x")),
        lambda r: r.wrap(print),
        lambda r: r.wrap_callback(print),
        lambda r: r.try_immediate(print),
        lambda r: r.try_callback_immediate(print, print),
        lambda r: r.bind_to_global(),
        lambda r: r.guard().__enter__(),
    ],
)
def test_terminated_reporter_rejects_operations(operation, host):
    reporter = Reporter(host=host)
    reporter.terminate()
    with pytest.raises(LifecycleError, match="terminated reporter"):
        operation(reporter)


def test_old_handle_after_terminate_is_harmless():
    reporter = Reporter()
    unsubscribe = reporter.subscribe(RecordingSubscriber())
    reporter.terminate()
    unsubscribe()
    assert reporter.state.subscriber_count == 0


# ── global binding ───────────────────────────────────────────────


def test_bind_and_unbind(host):
    reporter = make_reporter(host=host)
    sink = RecordingSubscriber()
    reporter.subscribe(sink)
    reporter.bind_to_global()
    assert host.bound is reporter

    try:
        raise ValueError("disk full")
    except ValueError as exc:
        host.handler(exc, exc.__traceback__)

    payload = sink.last
    assert payload["name"] == "ValueError"
    assert payload["source"] == __file__
    assert isinstance(payload["line_number"], int)
    assert "column_number" in payload

    reporter.unbind_from_global()
    assert host.bound is None


def test_only_one_reporter_per_host(host):
    Reporter(host=host).bind_to_global()
    with pytest.raises(GlobalBindingError):
        Reporter(host=host).bind_to_global()


def test_unbind_requires_a_binding(host):
    with pytest.raises(GlobalBindingError):
        Reporter(host=host).unbind_from_global()


def test_terminated_reporter_can_still_unbind(host):
    reporter = Reporter(host=host)
    reporter.bind_to_global()
    reporter.terminate()
    reporter.unbind_from_global()
    assert host.bound is None
