from __future__ import annotations

import logging

import pytest

from voxpulse.core.config.models import AlertThresholds
from voxpulse.core.errors import RuleConfigError, ValidationError
from voxpulse.core.telemetry.alerts import AlertEngine, AlertRule, default_rules
from voxpulse.core.telemetry.application import ApplicationAggregator
from voxpulse.core.telemetry.models import AlertLevel, AlertSeverity, CpuStats, DiskStats, MemoryStats, NetworkStats, ResourceSample


def _resource(memory_percent: float) -> ResourceSample:
    return ResourceSample(
        cpu=CpuStats(usage_percent=10.0, load_averages=[0.1, 0.1, 0.1]),
        memory=MemoryStats(used_bytes=0, free_bytes=0, total_bytes=0, usage_percent=memory_percent),
        disk=DiskStats(used_bytes=0, free_bytes=0, total_bytes=0, usage_percent=0.0),
        network=NetworkStats(bytes_in=0, bytes_out=0, active_connections=0),
    )


def _always(name: str, severity: AlertSeverity = AlertSeverity.low) -> AlertRule:
    return AlertRule(name, severity, f"{name} fired", lambda _s, _r: True)


def test_persistent_condition_floods_one_alert_per_tick():
    engine = AlertEngine([_always("stuck")])
    agg = ApplicationAggregator()
    for _ in range(7):
        engine.evaluate(agg.snapshot(), None)
    stuck = [a for a in engine.all_alerts() if a.kind == "stuck"]
    assert len(stuck) == 7
    assert len({a.id for a in stuck}) == 7


def test_rules_evaluated_in_registration_order():
    engine = AlertEngine([_always("first"), AlertRule("never", AlertSeverity.low, "x", lambda _s, _r: False), _always("second")])
    created = engine.evaluate(ApplicationAggregator().snapshot(), None)
    assert [a.kind for a in created] == ["first", "second"]


def test_ledger_cap_evicts_oldest_regardless_of_resolution(clock):
    engine = AlertEngine([], max_alerts=500, clock=clock.time)
    first = engine.create_alert("manual", "low", "oldest")
    assert engine.resolve_alert(first.id)
    ids = [first.id]
    for i in range(505):
        clock.advance(0.001)
        ids.append(engine.create_alert("manual", "low", f"n{i}").id)
    alerts = engine.all_alerts()
    assert len(alerts) == 500
    assert [a.id for a in alerts] == ids[-500:]


def test_resolve_is_idempotent(clock):
    engine = AlertEngine([], clock=clock.time)
    alert = engine.create_alert("manual", AlertSeverity.critical, "call routing down")
    clock.advance(5)
    assert engine.resolve_alert(alert.id) is True
    resolved_at = engine.all_alerts()[0].resolved_at
    clock.advance(5)
    assert engine.resolve_alert(alert.id) is False
    after = engine.all_alerts()[0]
    assert after.resolved is True
    assert after.resolved_at == resolved_at


def test_resolve_unknown_id_returns_false():
    assert AlertEngine([]).resolve_alert("alert_0_missing") is False


def test_active_alerts_and_severity_filter():
    engine = AlertEngine([])
    a = engine.create_alert("k1", "high", "m1")
    engine.create_alert("k2", "low", "m2")
    engine.create_alert("k3", "high", "m3")
    engine.resolve_alert(a.id)
    assert [x.kind for x in engine.active_alerts()] == ["k2", "k3"]
    assert [x.kind for x in engine.alerts_by_severity("high")] == ["k1", "k3"]
    assert [x.kind for x in engine.alerts_by_severity(AlertSeverity.low)] == ["k2"]


def test_unknown_severity_rejected():
    engine = AlertEngine([])
    with pytest.raises(ValidationError):
        engine.alerts_by_severity("urgent")
    with pytest.raises(ValidationError):
        engine.create_alert("k", "urgent", "m")


def test_alert_title_and_level_follow_severity():
    engine = AlertEngine([])
    crit = engine.create_alert("db_down", "critical", "m")
    high = engine.create_alert("slow", "high", "m")
    med = engine.create_alert("meh", "medium", "m")
    assert crit.title == "CRITICAL: db_down"
    assert (crit.level, high.level, med.level) == (AlertLevel.error, AlertLevel.warning, AlertLevel.info)


def test_severity_ordering():
    assert AlertSeverity.low < AlertSeverity.medium < AlertSeverity.high < AlertSeverity.critical
    assert max([AlertSeverity.medium, AlertSeverity.critical, AlertSeverity.low]) == AlertSeverity.critical


def test_queries_return_copies():
    engine = AlertEngine([])
    engine.create_alert("k", "low", "m")
    copy = engine.all_alerts()[0]
    copy.resolved = True
    assert engine.active_alerts()[0].resolved is False


def test_create_alert_logs_and_redacts_metadata(caplog):
    logger = logging.getLogger("test.alerts")
    engine = AlertEngine([], logger=logger)
    with caplog.at_level(logging.WARNING, logger="test.alerts"):
        alert = engine.create_alert("provider", "high", "provider rejected key", {"headers": {"Authorization": "Bearer abc.def"}})
    assert "ALERT [HIGH]: provider rejected key" in caplog.text
    assert "abc.def" not in str(alert.metadata)


def test_duplicate_rule_names_rejected():
    with pytest.raises(RuleConfigError):
        AlertEngine([_always("dup"), _always("dup")])


def test_default_rules_fire_on_breaches():
    engine = AlertEngine(default_rules())
    agg = ApplicationAggregator()
    for i in range(11):
        agg.record_error("stt", f"e{i}")
    for ok in (True, False, False):
        agg.record_call(ok, 100)
        agg.record_api_request(ok, 100)
        agg.record_inference_request(ok, 100)
    created = engine.evaluate(agg.snapshot(), _resource(95.0))
    assert [a.kind for a in created] == ["high_error_rate", "low_success_rate", "high_memory_usage", "api_failures", "llm_failures"]
    meta = created[0].metadata["metrics"]
    assert meta["calls"]["total"] == 3
    assert meta["errors"]["total"] == 11


def test_default_rules_quiet_on_healthy_snapshot():
    engine = AlertEngine(default_rules())
    agg = ApplicationAggregator()
    for _ in range(20):
        agg.record_call(True, 100)
        agg.record_api_request(True, 100)
        agg.record_inference_request(True, 100)
    assert engine.evaluate(agg.snapshot(), _resource(40.0)) == []
    # memory rule needs a resource sample to fire
    assert engine.evaluate(agg.snapshot(), None) == []


def test_default_rule_thresholds_come_from_config():
    engine = AlertEngine(default_rules(AlertThresholds(error_total_max=1)))
    agg = ApplicationAggregator()
    agg.record_error("x", "a")
    agg.record_error("x", "b")
    assert [a.kind for a in engine.evaluate(agg.snapshot(), None)] == ["high_error_rate"]
