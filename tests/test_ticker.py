"""Tests for the elapsed-time tickers."""
import time
from unittest.mock import MagicMock

from quizmaster.ticker import ElapsedTimeTicker, ManualTicker


def test_thread_ticker_fires_until_stopped():
    calls = []
    ticker = ElapsedTimeTicker(lambda: calls.append(1), interval=0.01)
    ticker.start()
    time.sleep(0.2)
    ticker.stop()
    assert not ticker.running
    time.sleep(0.05)
    stopped_at = len(calls)
    time.sleep(0.1)
    assert stopped_at > 0
    assert len(calls) == stopped_at


def test_thread_ticker_survives_callback_errors():
    callback = MagicMock(side_effect=[RuntimeError("boom"), None, None, None, None, None])
    ticker = ElapsedTimeTicker(callback, interval=0.01)
    ticker.start()
    time.sleep(0.1)
    ticker.stop()
    assert callback.call_count >= 2


def test_stop_without_start_is_noop():
    ticker = ElapsedTimeTicker(MagicMock())
    ticker.stop()
    assert not ticker.running


def test_manual_ticker_only_fires_while_running():
    callback = MagicMock()
    ticker = ManualTicker(callback)
    ticker.fire()
    ticker.start()
    ticker.fire(3)
    ticker.stop()
    ticker.fire()
    assert callback.call_count == 3
