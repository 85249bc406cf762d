"""Child process cleanup shared by the encoder and the metadata source."""

import asyncio

from screen_grabber.encoding.process import kill_process


class ExitedProcess:
    """A process that exits between the returncode check and kill()."""

    def __init__(self):
        self.returncode = None
        self.waited = False

    def kill(self):
        self.returncode = 0
        raise ProcessLookupError()

    async def wait(self):
        self.waited = True
        return self.returncode


class FinishedProcess(ExitedProcess):
    def __init__(self):
        super().__init__()
        self.returncode = 1
        self.kill_called = False

    def kill(self):
        self.kill_called = True


class TestKillProcess:
    def test_process_gone_before_kill(self):
        process = ExitedProcess()

        asyncio.run(kill_process(process))

        assert process.waited is True

    def test_finished_process_not_killed(self):
        process = FinishedProcess()

        asyncio.run(kill_process(process))

        assert process.kill_called is False
        assert process.waited is True
