import os
import signal

import pytest

from trainping.campaign import Campaign, State, interrupt_scope
from trainping.config import Policy
from trainping.events import Reply, Idle, EngineDone
from trainping.export import ExportError
from trainping.scriptedengine import ScriptedEngine

TARGET = "192.0.2.1"


def run(config, script, **kwargs):
    engine = ScriptedEngine(script)
    campaign = Campaign(engine, config, **kwargs)
    return campaign, campaign.run()


def test_policy_follows_train_size(make_config):
    assert make_config(train_size=1).policy is Policy.BOUNDED_CYCLES
    assert make_config(train_size=2).policy is Policy.TRAIN_CAPTURE


# bounded cycles

def test_three_equal_replies(make_config, capsys):
    script = [Reply(TARGET, 10.0, 0), Idle(), Reply(TARGET, 10.0, 1), Idle(), Reply(TARGET, 10.0, 2), Idle()]
    campaign, result = run(make_config(count=3), script)

    assert result.policy is Policy.BOUNDED_CYCLES
    assert result.transmitted == 3
    assert result.received == 3
    assert tuple(result.summary) == (10.0, 10.0, 10.0, 0.0)
    assert campaign.state is State.TERMINATED

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "PING example.net (192.0.2.1) 56(84) bytes of data."
    # shown 1-based
    assert out[1] == "64 bytes from 192.0.2.1: icmp_seq=1 ttl=128 time=10.00 ms"
    assert out[3] == "64 bytes from 192.0.2.1: icmp_seq=3 ttl=128 time=10.00 ms"
    assert "3 packets transmitted, 3 received, 0.00% packet loss" in out[5]
    assert out[6] == "rtt min/avg/max/mdev = 10.000/10.000/10.000/0.000 ms"


def test_cycle_without_reply_is_unreachable(make_config, capsys):
    script = [Reply(TARGET, 5.0, 0), Idle(), Idle()]
    _, result = run(make_config(count=2), script)

    assert result.transmitted == 2
    assert result.received == 1
    assert result.unreachable == 1

    out = capsys.readouterr().out
    assert out.count("192.0.2.1 : unreachable") == 1
    assert "2 packets transmitted, 1 received, 0.50% packet loss" in out


def test_sent_never_exceeds_count(make_config):
    script = [Idle()] * 10
    _, result = run(make_config(count=4), script)

    assert result.sent == 4
    assert result.transmitted == 4
    assert result.summary is None


def test_count_zero_processes_nothing(make_config):
    _, result = run(make_config(count=0), [Reply(TARGET, 1.0, 0), Idle()])
    assert result.received == 0
    assert result.transmitted == 0


def test_reply_from_other_address_counts_but_does_not_fill_slot(make_config, capsys):
    script = [Reply("198.51.100.9", 7.0, 0), Idle()]
    _, result = run(make_config(count=1), script)

    assert result.received == 1
    assert result.summary.mean == 7.0
    assert result.unreachable == 1
    assert "198.51.100.9" not in capsys.readouterr().out


def test_no_export_unless_requested(make_config):
    config = make_config(count=1, train_size=2)
    run(config, [Reply(TARGET, 1.0, 0), Reply(TARGET, 1.0, 1), Idle()])
    assert not os.path.exists(config.export_path)


def test_bounded_cycles_export_every_reply(make_config):
    config = make_config(count=2, export=True)
    run(config, [Reply(TARGET, 4.0, 0), Idle(), Reply(TARGET, 6.0, 1), Idle()])

    with open(config.export_path) as f:
        assert f.read() == "0\t4.00\n1\t6.00\n"


# train capture

def test_train_capture_records_every_reply(make_config, capsys):
    config = make_config(count=2, train_size=2, export=True)
    script = [Reply(TARGET, 1.5, 0), Reply(TARGET, 2.5, 1), Idle(),
              Reply(TARGET, 4.0, 3), Reply(TARGET, 3.0, 2), Idle()]
    campaign, result = run(config, script)

    assert result.policy is Policy.TRAIN_CAPTURE
    assert result.received == 4
    assert result.transmitted == campaign.engine.sent == 4
    assert campaign.stats.samples == [1.5, 2.5, 4.0, 3.0]

    with open(config.export_path) as f:
        assert f.read() == "0\t1.50\n1\t2.50\n2\t3.00\n3\t4.00\n"

    out = capsys.readouterr().out
    # printed as they arrive, raw sequence numbers
    assert "64 bytes from 192.0.2.1: icmp_seq=3 ttl=128 time=4.00 ms" in out
    assert "unreachable" not in out


def test_train_capture_empty_train_is_unreachable(make_config, capsys):
    config = make_config(count=1, train_size=2)
    script = [Idle(), Reply(TARGET, 1.0, 2), Reply(TARGET, 1.0, 3), Idle()]
    _, result = run(config, script)

    assert result.unreachable == 1
    assert result.received == 2
    assert result.sent == 4
    assert "example.net : unreachable" in capsys.readouterr().out


def test_train_capture_lost_reply_never_reaches_count(make_config):
    # current behavior: received // train_size must equal count exactly, so
    # one lost reply keeps the run going until something else ends it
    config = make_config(count=1, train_size=2)
    script = [Reply(TARGET, 1.0, 0), Idle(), Idle(), Idle(), EngineDone()]
    _, result = run(config, script)

    assert result.received == 1
    assert result.sent == 2 + 3 * 2
    assert result.transmitted == 6


def test_train_capture_terminates_on_idle(make_config):
    # replies are in before the train is accounted for
    config = make_config(count=1, train_size=2)
    campaign, result = run(config, [Reply(TARGET, 1.0, 0), Reply(TARGET, 1.0, 1), Idle(), Idle()])

    assert result.received == 2
    assert result.sent == 2
    assert result.transmitted == 2
    assert result.unreachable == 0
    assert campaign.engine.script == [Idle()]


def test_train_capture_terminates_on_reply(make_config):
    config = make_config(count=1, train_size=2)
    campaign, result = run(config, [Idle(), Reply(TARGET, 1.0, 2), Reply(TARGET, 1.0, 3), Idle()])

    assert result.received == 2
    assert result.sent == 4
    assert result.transmitted == 2
    assert campaign.engine.script == [Idle()]


def test_duplicate_sequence_is_exported_once(make_config):
    config = make_config(count=5, train_size=2, export=True)
    script = [Reply(TARGET, 1.0, 0), Reply(TARGET, 9.0, 0), EngineDone()]
    campaign, result = run(config, script)

    assert result.received == 2
    with open(config.export_path) as f:
        assert f.read() == "0\t9.00\n"


# interrupts and engine completion

def test_interrupt_overrides_pending_events(make_config):
    config = make_config(count=5, train_size=2, export=True)
    engine = ScriptedEngine()
    campaign = Campaign(engine, config)
    engine.script = [Reply(TARGET, 1.0, 0), campaign.interrupt, Reply(TARGET, 1.0, 1), Idle()]

    result = campaign.run()

    assert result.interrupted
    assert result.received == 0
    assert engine.stopped == 1
    # export still written, empty
    with open(config.export_path) as f:
        assert f.read() == ""


def test_interrupt_mid_run_stops_processing(make_config):
    config = make_config(count=5, train_size=2, export=True)
    lines = []
    engine = ScriptedEngine([Reply(TARGET, 2.0, 0), Reply(TARGET, 3.0, 1), Idle(), Reply(TARGET, 4.0, 2)])
    campaign = Campaign(engine, config, echo=lines.append)

    def echo(line):
        lines.append(line)
        if "bytes from" in line:
            campaign.interrupt()
    campaign.echo = echo

    result = campaign.run()

    assert result.interrupted
    assert result.received == 1
    assert campaign.stats.samples == [2.0]
    with open(config.export_path) as f:
        assert f.read() == "0\t2.00\n"


def test_sigint_ends_run(make_config):
    config = make_config(count=5)
    script = [Reply(TARGET, 1.0, 0), lambda: signal.raise_signal(signal.SIGINT), Idle()]
    campaign, result = run(config, script)

    assert result.interrupted
    assert result.transmitted == 0
    assert campaign.state is State.TERMINATED


def test_signal_handlers_restored(make_config):
    before = signal.getsignal(signal.SIGINT), signal.getsignal(signal.SIGTERM)
    seen = []
    script = [lambda: seen.append(signal.getsignal(signal.SIGINT)), Idle()]

    run(make_config(count=1), script)

    assert seen[0] is not before[0]
    assert (signal.getsignal(signal.SIGINT), signal.getsignal(signal.SIGTERM)) == before


def test_interrupt_scope_restores_on_error():
    before = signal.getsignal(signal.SIGTERM)
    with pytest.raises(RuntimeError):
        with interrupt_scope(lambda: None):
            raise RuntimeError("boom")
    assert signal.getsignal(signal.SIGTERM) is before


def test_engine_failure_is_reported(make_config, capsys):
    script = [Reply(TARGET, 6.0, 0), EngineDone(OSError("network is unreachable"))]
    campaign, result = run(make_config(count=5), script)

    assert isinstance(result.error, OSError)
    assert result.received == 1
    assert result.summary.mean == 6.0
    assert campaign.engine.stopped == 1

    out = capsys.readouterr().out
    assert "Ping failed: network is unreachable" in out
    assert "rtt min/avg/max/mdev = 6.000/6.000/6.000/0.000 ms" in out


def test_engine_finishing_cleanly_prints_no_failure(make_config, capsys):
    _, result = run(make_config(count=5), [Idle(), EngineDone()])

    assert result.error is None
    assert result.transmitted == 1
    assert "Ping failed" not in capsys.readouterr().out


def test_export_failure_propagates_after_report(make_config, tmp_path, capsys):
    config = make_config(count=1, train_size=2, export=True,
                         export_path=str(tmp_path / "missing" / "out.txt"))
    engine = ScriptedEngine([Reply(TARGET, 1.0, 0), EngineDone()])
    campaign = Campaign(engine, config)

    with pytest.raises(ExportError) as excinfo:
        campaign.run()

    assert isinstance(excinfo.value.reason, OSError)

    assert campaign.state is State.TERMINATED
    assert engine.stopped == 1
    assert "--- example.net ping statistics ---" in capsys.readouterr().out
