"""Tests for check orchestration and report assembly."""
import pytest

from bastion import __version__
from bastion.checks import (
    audit_checks,
    connection_checks,
    permission_checks,
    persistence_checks,
    port_checks,
)
from bastion.engine import (
    ENGINES,
    AuditEngine,
    Engine,
    PermissionsEngine,
    PersistenceEngine,
)
from bastion.models import Category, CheckStatus

from conftest import ExplodingCheck, FakeRunner, StaticCheck, fixed_hostname


# ── Helpers ─────────────────────────────────────────────────────────


def engine(checks, caps, **kw):
    return Engine(runner=FakeRunner(), capabilities=caps, checks=checks,
                  hostname_provider=fixed_hostname, **kw)


# ── Tests ───────────────────────────────────────────────────────────


def test_findings_preserve_order(caps):
    """Findings appear in registry order, then in per-check order."""
    checks = [
        StaticCheck("a", (CheckStatus.PASS, CheckStatus.WARN)),
        StaticCheck("b", (CheckStatus.FAIL,)),
        StaticCheck("c", (CheckStatus.INFO, CheckStatus.PASS)),
    ]
    report = engine(checks, caps).run()
    assert [f.id for f in report.findings] == ["a_0", "a_1", "b_0", "c_0", "c_1"]


def test_exception_becomes_inconclusive_and_run_continues(caps):
    checks = [StaticCheck("a"), ExplodingCheck(), StaticCheck("z")]
    report = engine(checks, caps).run()
    assert [f.id for f in report.findings] == ["a_0", "boom", "z_0"]
    boom = report.findings[1]
    assert boom.status == CheckStatus.INCONCLUSIVE
    assert boom.category == Category.FIREWALL_NETWORK
    assert "kaboom" in boom.detail


def test_empty_check_list_is_legitimate(caps):
    report = engine([StaticCheck("empty", ())], caps).run()
    assert report.findings == ()
    assert report.risk_score.composite == pytest.approx(100.0)
    assert report.risk_score.confidence == 0.0


def test_report_stamped(caps):
    report = engine([StaticCheck("a")], caps).run()
    assert report.version == __version__
    assert report.hostname == "test-host"
    assert report.capabilities is caps
    assert report.timestamp


def test_scores_full_finding_set(caps):
    checks = [StaticCheck("a", (CheckStatus.FAIL,)), StaticCheck("b", (CheckStatus.INCONCLUSIVE,))]
    report = engine(checks, caps).run()
    assert report.risk_score.composite == pytest.approx(100 - 10 * 0.30)
    assert report.risk_score.confidence == pytest.approx(0.5)
    assert (report.fail_count, report.inconclusive_count) == (1, 1)


def test_same_snapshot_passed_to_every_check(caps):
    checks = [StaticCheck("a"), StaticCheck("b")]
    engine(checks, caps).run()
    assert checks[0].seen == [caps]
    assert checks[1].seen[0] is checks[0].seen[0]


def test_capabilities_detected_per_run(monkeypatch, caps):
    """Without an injected snapshot, each run detects afresh."""
    calls = []

    def detect(runner):
        calls.append(runner)
        return caps

    monkeypatch.setattr("bastion.engine.detect_capabilities", detect)
    e = Engine(runner=FakeRunner(), checks=[StaticCheck("a")], hostname_provider=fixed_hostname)
    e.run()
    e.run()
    assert len(calls) == 2


def test_default_hostname_falls_back(caps, monkeypatch):
    runner = FakeRunner()
    runner.register_failure("/usr/sbin/scutil", ["--get", "ComputerName"])
    monkeypatch.setattr("bastion.capabilities.socket.gethostname", lambda: "fallback")
    report = Engine(runner=runner, capabilities=caps, checks=[]).run()
    assert report.hostname == "fallback"


# ── Registries ──────────────────────────────────────────────────────


def test_registries_have_unique_ids():
    for registry in (audit_checks, persistence_checks, port_checks,
                     connection_checks, permission_checks):
        ids = [c.id for c in registry()]
        assert len(ids) == len(set(ids)), registry.__name__


def test_audit_registry_starts_with_sip():
    ids = [c.id for c in audit_checks()]
    assert ids[0] == "sip"
    assert "tcc_full_access" in ids


def test_engine_table():
    assert set(ENGINES) == {"audit", "scan", "connections", "persistence", "permissions"}
    assert [c.id for c in PersistenceEngine(runner=FakeRunner()).checks] == [
        c.id for c in persistence_checks()
    ]


def test_permissions_engine_without_access(limited_caps):
    report = PermissionsEngine(
        runner=FakeRunner(), capabilities=limited_caps, hostname_provider=fixed_hostname,
    ).run()
    [f] = report.findings
    assert f.status == CheckStatus.INCONCLUSIVE
    assert report.risk_score.confidence == 0.0


def test_full_audit_with_silent_host(home, caps):
    """Every command returning nothing still yields a complete, bounded report."""
    report = AuditEngine(
        runner=FakeRunner(), capabilities=caps, hostname_provider=fixed_hostname,
    ).run()
    assert report.findings
    assert 0 <= report.risk_score.composite <= 100
    assert 0 <= report.risk_score.confidence <= 1
    # Silence is never read as a passing SIP
    sip = next(f for f in report.findings if f.id == "sip")
    assert sip.status == CheckStatus.INCONCLUSIVE
