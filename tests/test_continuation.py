"""Unit and property-based tests for the continuation module."""
import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from anima.continuation import ContinuationController, ContinuationState, WaitingDots
from anima.errors import ContinuationLimitError


class TestContinuationState:
    """Tests for ContinuationState model."""

    def test_defaults(self):
        state = ContinuationState()
        assert state.attempt_count == 0
        assert state.max_attempts == 5
        assert state.remaining == 5
        assert not state.exhausted

    def test_count_above_cap_fails_validation(self):
        """Test that the invariant attempt_count <= max_attempts is enforced."""
        with pytest.raises(ValidationError):
            ContinuationState(attempt_count=6, max_attempts=5)

    def test_assignment_above_cap_fails_validation(self):
        state = ContinuationState(max_attempts=1)
        state.attempt_count = 1
        with pytest.raises(ValidationError):
            state.attempt_count = 2

    def test_negative_values_fail_validation(self):
        with pytest.raises(ValidationError):
            ContinuationState(attempt_count=-1)
        with pytest.raises(ValidationError):
            ContinuationState(max_attempts=-1)


class TestContinuationController:
    """Tests for ContinuationController."""

    def test_should_continue_requires_backend_request(self):
        controller = ContinuationController(max_attempts=5)
        assert controller.should_continue(True) is True
        assert controller.should_continue(False) is False

    def test_cap_ends_loop_silently(self):
        """Test that reaching the cap returns False without raising."""
        controller = ContinuationController(max_attempts=2)
        controller.record_attempt()
        controller.record_attempt()

        assert controller.should_continue(True) is False
        assert controller.attempt_count == 2

    def test_record_attempt_past_cap_raises(self):
        """Test that misuse past the cap is reported, not absorbed."""
        controller = ContinuationController(max_attempts=1)
        assert controller.record_attempt() == 1
        with pytest.raises(ContinuationLimitError):
            controller.record_attempt()
        assert controller.attempt_count == 1

    def test_reset(self):
        controller = ContinuationController(max_attempts=3)
        controller.record_attempt()
        controller.record_attempt()
        controller.reset()

        assert controller.attempt_count == 0
        assert controller.should_continue(True)

    def test_zero_cap_never_continues(self):
        controller = ContinuationController(max_attempts=0)
        assert controller.should_continue(True) is False

    def test_state_is_a_copy(self):
        controller = ContinuationController(max_attempts=3)
        state = controller.state
        state.attempt_count = 3
        assert controller.attempt_count == 0

    @given(
        max_attempts=st.integers(min_value=0, max_value=10),
        requests=st.lists(st.booleans(), max_size=40),
    )
    def test_loop_never_exceeds_cap(self, max_attempts: int, requests: list[bool]):
        """Property test: following should_continue never breaks the cap."""
        controller = ContinuationController(max_attempts=max_attempts)
        taken = 0
        for requested in requests:
            if controller.should_continue(requested):
                controller.record_attempt()
                taken += 1
            assert controller.attempt_count <= max_attempts
        assert taken == min(sum(requests), max_attempts)


class TestWaitingDots:
    """Tests for the waiting-dots animation."""

    def test_cycle(self):
        """Test that dots cycle 0 -> 1 -> 2 -> 3 -> 0."""
        dots = WaitingDots()
        assert [dots.advance() for _ in range(5)] == [1, 2, 3, 0, 1]

    def test_text_follows_count(self):
        dots = WaitingDots(max_dots=3)
        dots.advance()
        dots.advance()
        assert dots.text == ".."

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            WaitingDots(interval_ms=0)
        with pytest.raises(ValueError):
            WaitingDots(max_dots=0)

    @pytest.mark.asyncio
    async def test_play_publishes_and_clears(self):
        """Test that playing publishes dot text and clears it afterwards."""
        dots = WaitingDots(interval_ms=5)
        seen: list[str] = []
        dots.subscribe(seen.append)

        await dots.play(40)

        assert "." in seen
        assert seen[-1] == ""
        assert dots.text == ""
        assert not dots.playing

    @pytest.mark.asyncio
    async def test_play_zero_duration_returns_immediately(self):
        dots = WaitingDots(interval_ms=5)
        await asyncio.wait_for(dots.play(0), timeout=0.5)
        assert dots.count == 0

    @pytest.mark.asyncio
    async def test_cancelled_play_clears_text(self):
        """Test that cancelling the waiting phase resets the dots."""
        dots = WaitingDots(interval_ms=2)
        task = asyncio.create_task(dots.play(10_000))
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert dots.text == ""
        assert not dots.playing

    @pytest.mark.asyncio
    async def test_controller_wait_uses_dots(self):
        dots = WaitingDots(interval_ms=2)
        seen: list[str] = []
        dots.subscribe(seen.append)
        controller = ContinuationController(dots=dots)

        await controller.wait(20)

        assert seen and seen[-1] == ""

    def test_raising_listener_does_not_stop_dots(self):
        dots = WaitingDots()
        seen: list[str] = []

        def broken(text):
            raise RuntimeError("spinner crashed")

        dots.subscribe(broken)
        dots.subscribe(seen.append)
        dots.advance()

        assert dots.count == 1
        assert seen == ["."]
