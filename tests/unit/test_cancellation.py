"""Tests for cancellation tokens."""

from __future__ import annotations

import threading

import pytest

from deploybundle.cancellation import CancellationToken
from deploybundle.errors import CancellationError


class TestCancellationToken:
    def test_initially_not_cancelled(self) -> None:
        token = CancellationToken()
        assert not token.is_cancelled
        token.check()

    def test_cancel_and_check(self) -> None:
        token = CancellationToken()
        token.cancel("user abort")
        assert token.is_cancelled
        assert token.reason == "user abort"
        with pytest.raises(CancellationError, match="user abort"):
            token.check()

    def test_cancel_from_other_thread(self) -> None:
        token = CancellationToken()
        thread = threading.Thread(target=token.cancel, args=("from worker",))
        thread.start()
        thread.join()
        assert token.is_cancelled
        with pytest.raises(CancellationError, match="from worker"):
            token.check()
