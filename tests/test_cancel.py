# Tests for cancellation

import os
import signal
import threading
import time

import pytest

from swo.cancel import Cancelled, CancelToken, cancel_on_interrupt


def test_wait_times_out_without_cancel():
    token = CancelToken()
    start = time.monotonic()
    token.wait(0.05)
    assert time.monotonic() - start >= 0.04
    assert not token.cancelled


def test_wait_raises_when_already_cancelled():
    token = CancelToken()
    token.cancel()
    with pytest.raises(Cancelled):
        token.wait(10)


def test_cancel_interrupts_wait():
    token = CancelToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(Cancelled):
            token.wait(10)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 5


def test_check():
    token = CancelToken()
    token.check()
    token.cancel()
    assert token.cancelled
    with pytest.raises(Cancelled):
        token.check()


def test_sigint_cancels_and_restores_handler():
    def previous_handler(signum, frame):
        pass

    original = signal.signal(signal.SIGINT, previous_handler)
    try:
        token = CancelToken()
        with pytest.raises(Cancelled):
            with cancel_on_interrupt(token):
                os.kill(os.getpid(), signal.SIGINT)
                # the handler runs between bytecodes; give it a chance
                time.sleep(1)
        assert token.cancelled
        assert signal.getsignal(signal.SIGINT) is previous_handler
    finally:
        signal.signal(signal.SIGINT, original)
