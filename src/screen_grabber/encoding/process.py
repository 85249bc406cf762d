"""Helpers for ffmpeg/ffprobe child processes."""

import asyncio


async def kill_process(process: asyncio.subprocess.Process) -> None:
    """Kill a child process if it is still running and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()
