import pytest

from yurtboot.convergence.poller import (
    Converged,
    NotYetConverged,
    PollError,
    poll_until,
    status_probe,
    with_deadline,
)
from yurtboot.errors import CommandError, PollTimeout, ProbeError


def _scripted(results):
    it = iter(results)
    return lambda: next(it)


def test_waits_twice_then_returns_value():
    waits, sleeps = [], []
    probe = _scripted([NotYetConverged(), NotYetConverged(), Converged("ready")])

    value = poll_until(probe, waits.append, 0.5, sleep=sleeps.append)

    assert value == "ready"
    assert waits == [1, 2]
    # no sleep after the converging attempt
    assert sleeps == [0.5, 0.5]


def test_error_on_first_attempt_is_not_retried():
    waits, calls = [], []
    boom = ProbeError("query failed")

    def probe():
        calls.append(1)
        return PollError(boom)

    with pytest.raises(ProbeError) as ei:
        poll_until(probe, waits.append, 1, sleep=lambda s: None)

    assert ei.value is boom
    assert waits == []
    assert len(calls) == 1


def test_error_after_waiting_keeps_attempt_count():
    waits = []
    probe = _scripted([NotYetConverged(), PollError(ProbeError("gone"))])
    with pytest.raises(ProbeError):
        poll_until(probe, waits.append, 1, sleep=lambda s: None)
    assert waits == [1]


def test_unknown_result_is_rejected():
    with pytest.raises(TypeError):
        poll_until(lambda: "ready", lambda n: None, 1, sleep=lambda s: None)


def test_with_deadline_turns_waiting_into_timeout():
    now = [0.0]
    bounded = with_deadline(lambda: NotYetConverged(), 10, clock=lambda: now[0])

    assert isinstance(bounded(), NotYetConverged)
    now[0] = 10.0
    res = bounded()
    assert isinstance(res, PollError)
    assert isinstance(res.cause, PollTimeout)


def test_with_deadline_passes_convergence_through():
    bounded = with_deadline(lambda: Converged("x"), 0.001, clock=lambda: 100.0)
    assert bounded() == Converged("x")


class ScriptedExecutor:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def execute(self, template, *args):
        self.calls.append((template, args))
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


def test_status_probe_compares_literal_output():
    ex = ScriptedExecutor(["NotReady", "", "Ready"])
    probe = status_probe(ex, "status %s", "node1", expected="Ready")

    assert isinstance(probe(), NotYetConverged)
    assert isinstance(probe(), NotYetConverged)
    assert probe() == Converged("Ready")
    assert ex.calls[0] == ("status %s", ("node1",))


def test_status_probe_maps_command_failure_to_poll_error():
    ex = ScriptedExecutor([CommandError("kubectl get nodes", 1, stderr="connection refused")])
    res = status_probe(ex, "kubectl get nodes", expected="Ready")()
    assert isinstance(res, PollError)
    assert isinstance(res.cause, ProbeError)
    assert "connection refused" in str(res.cause)
