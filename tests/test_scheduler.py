"""Tests for the fixed-period game loop"""
import threading
import time

from fantasy_zoo.game.scheduler import GameLoop


class TestGameLoopLifecycle:

    def test_start_and_stop_are_idempotent(self, engine, caplog):
        loop = GameLoop(engine, period_ms=10)

        assert loop.start() is True
        assert loop.start() is False
        assert loop.running is True

        assert loop.stop(timeout=1) is True
        assert loop.stop(timeout=1) is False
        assert loop.running is False
        assert "already running" in caplog.text
        assert "not running" in caplog.text

    def test_stop_before_start_is_noop(self, engine):
        loop = GameLoop(engine, period_ms=10)
        assert loop.stop() is False

    def test_loop_steps_engine(self, engine):
        loop = GameLoop(engine, period_ms=5)
        reports = []
        loop.add_listener(reports.append)

        loop.start()
        deadline = time.monotonic() + 2
        while not reports and time.monotonic() < deadline:
            time.sleep(0.01)
        loop.stop(timeout=1)

        assert reports
        assert reports[0].phases[0] == "incubation"

    def test_restart_after_stop(self, engine):
        loop = GameLoop(engine, period_ms=5)
        loop.start()
        loop.stop(timeout=1)
        assert loop.start() is True
        loop.stop(timeout=1)

    def test_restart_during_slow_step_never_runs_two_loops(self, engine, caplog):
        """A stop that times out mid-step must not leave the old thread ticking after start"""
        loop = GameLoop(engine, period_ms=20)
        ticks_by_thread = {}
        entered = threading.Event()

        def slow_first_listener(report):
            me = threading.current_thread()
            ticks_by_thread[me] = ticks_by_thread.get(me, 0) + 1
            if not entered.is_set():
                entered.set()
                time.sleep(0.3)

        loop.add_listener(slow_first_listener)
        loop.start()
        assert entered.wait(2)
        first_thread = next(iter(ticks_by_thread))

        assert loop.stop(timeout=0.01) is True
        assert loop.running is False
        assert loop.start() is False
        assert "still finishing" in caplog.text

        first_thread.join(2)
        assert not first_thread.is_alive()
        ticks_before_restart = ticks_by_thread[first_thread]

        assert loop.start() is True
        time.sleep(0.2)
        loop.stop(timeout=1)

        assert ticks_by_thread[first_thread] == ticks_before_restart
        assert len(ticks_by_thread) == 2

    def test_period_defaults_to_tick(self, engine):
        assert GameLoop(engine).period_ms == engine.config["TICK_MS"]


class TestTickOnce:

    def test_tick_runs_step_and_listeners(self, engine, clock):
        loop = GameLoop(engine)
        seen = []
        loop.add_listener(lambda report: seen.append(report.now))

        report = loop.tick_once(clock() + 1000)

        assert report is not None
        assert seen == [clock() + 1000]

    def test_tick_skipped_while_in_flight(self, engine):
        loop = GameLoop(engine)
        with loop.exclusive():
            assert loop.tick_once() is None
        assert loop.skipped_ticks == 1
        assert loop.tick_once() is not None

    def test_tick_skipped_from_other_thread_during_slow_listener(self, engine):
        loop = GameLoop(engine)
        entered = threading.Event()
        release = threading.Event()
        results = []

        def slow_listener(report):
            entered.set()
            release.wait(2)

        loop.add_listener(slow_listener)
        worker = threading.Thread(target=lambda: results.append(loop.tick_once()))
        worker.start()
        assert entered.wait(2)

        assert loop.tick_once() is None
        release.set()
        worker.join(2)

        assert results and results[0] is not None
        assert loop.skipped_ticks == 1

    def test_failing_listener_is_logged(self, engine, caplog):
        loop = GameLoop(engine)

        def broken(report):
            raise ValueError("render failed")

        calls = []
        loop.add_listener(broken)
        loop.add_listener(calls.append)

        report = loop.tick_once()

        assert report is not None
        assert len(calls) == 1
        assert "failed" in caplog.text
