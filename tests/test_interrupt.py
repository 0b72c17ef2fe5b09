import asyncio
import logging

import pytest

from core.interrupt import InterruptController


@pytest.fixture
def controller():
    return InterruptController()


class TestCancellableDelay:
    """Test suite for stop-aware sleeping."""

    async def test_full_delay_returns_true(self, controller):
        assert await controller.cancellable_delay(0.01) is True
        assert controller.active_tasks == 0

    async def test_stop_wakes_delay_early(self, controller):
        loop = asyncio.get_running_loop()
        started = loop.time()
        loop.call_later(0.05, controller.request_stop)

        completed = await controller.cancellable_delay(30)

        assert completed is False
        assert loop.time() - started < 5
        assert controller.active_tasks == 0

    async def test_already_stopped_returns_immediately(self, controller):
        controller.request_stop()
        assert await controller.cancellable_delay(30) is False

    async def test_delay_counts_as_active_task(self, controller):
        delay = asyncio.ensure_future(controller.cancellable_delay(30))
        await asyncio.sleep(0)
        assert controller.active_tasks == 1
        controller.request_stop()
        await delay
        assert controller.active_tasks == 0

    async def test_notice_logged_once_per_episode(self, controller, caplog):
        caplog.set_level(logging.INFO, logger="core.interrupt")
        controller.request_stop()
        for _ in range(3):
            await controller.cancellable_delay(1)
        notices = [r for r in caplog.records if r.getMessage() == "Process stopped successfully."]
        assert len(notices) == 1

        controller.clear()
        controller.request_stop()
        await controller.cancellable_delay(1)
        notices = [r for r in caplog.records if r.getMessage() == "Process stopped successfully."]
        assert len(notices) == 2


class TestActiveTasks:
    """Test suite for the active-task counter."""

    def test_counter_never_negative(self, controller):
        controller.exit_task()
        controller.exit_task()
        assert controller.active_tasks == 0

    async def test_task_context_restores_count_on_error(self, controller):
        with pytest.raises(RuntimeError):
            async with controller.task():
                assert controller.active_tasks == 1
                raise RuntimeError("boom")
        assert controller.active_tasks == 0

    async def test_wait_until_idle_polls(self, controller):
        controller.enter_task()
        seen = []
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, controller.exit_task)

        await controller.wait_until_idle(poll_interval=0.01, on_wait=seen.append)

        assert controller.active_tasks == 0
        assert seen and all(count == 1 for count in seen)

    async def test_clear_resets_stop(self, controller):
        controller.request_stop()
        assert controller.stop_requested
        controller.clear()
        assert not controller.stop_requested
        assert await controller.cancellable_delay(0.01) is True
