"""Unit tests for mutation.background and mutation.notifier modules."""

import asyncio
import logging

from src.cli.output import OutputHandler
from src.mutation.background import BackgroundTasks
from src.mutation.notifier import LoggingNotifier, Notifier, NullNotifier


class TestBackgroundTasks:
    """Test cases for BackgroundTasks."""

    def test_spawn_does_not_block_caller(self):
        finished = []

        async def slow():
            await asyncio.sleep(0.01)
            finished.append(True)

        async def scenario():
            tasks = BackgroundTasks()
            tasks.spawn(slow(), 'slow')
            assert finished == []
            assert len(tasks) == 1
            await tasks.drain()
            assert len(tasks) == 0

        asyncio.run(scenario())

        assert finished == [True]

    def test_failure_is_logged_not_raised(self, caplog):
        async def failing():
            raise ConnectionError("backend down")

        async def scenario():
            tasks = BackgroundTasks()
            tasks.spawn(failing(), 'logout')
            await tasks.drain()

        with caplog.at_level(logging.WARNING, logger='src.mutation.background'):
            asyncio.run(scenario())

        assert "Background task 'logout' failed: backend down" in caplog.text

    def test_drain_with_no_tasks(self):
        asyncio.run(BackgroundTasks().drain())


class TestNotifiers:
    """Test cases for the Notifier implementations."""

    def test_implementations_satisfy_protocol(self):
        assert isinstance(LoggingNotifier(), Notifier)
        assert isinstance(NullNotifier(), Notifier)
        assert isinstance(OutputHandler(), Notifier)

    def test_logging_notifier_logs_errors_as_warnings(self, caplog):
        with caplog.at_level(logging.INFO, logger='src.mutation.notifier'):
            LoggingNotifier().error("Could not delete notification")

        assert caplog.records[-1].levelno == logging.WARNING
        assert caplog.records[-1].getMessage() == "Could not delete notification"
