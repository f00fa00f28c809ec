from __future__ import annotations

import logging
import threading

from src.timetracker.timetracker.notifications.dispatcher import BackgroundDispatcher, InlineDispatcher


def test_inline_runs_immediately():
    calls = []

    InlineDispatcher().submit(lambda: calls.append(1))

    assert calls == [1]


def test_inline_logs_and_swallows_failures(caplog):
    def boom():
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR):
        InlineDispatcher().submit(boom, description="timesheet-approved notification")

    assert "timesheet-approved notification failed" in caplog.text


def test_background_runs_off_the_calling_thread():
    dispatcher = BackgroundDispatcher(max_workers=1)
    seen = []
    done = threading.Event()

    def job():
        seen.append(threading.current_thread().name)
        done.set()

    dispatcher.submit(job)
    assert done.wait(timeout=5)
    dispatcher.shutdown()

    assert seen[0].startswith("notify")


def test_background_failure_is_logged(caplog):
    dispatcher = BackgroundDispatcher(max_workers=1)

    def boom():
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR):
        dispatcher.submit(boom, description="vacation-approved notification")
        dispatcher.shutdown(wait=True)

    assert "vacation-approved notification failed" in caplog.text
