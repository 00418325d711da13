import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.returncode == 0


async def run_command(args: list[str], timeout: float) -> CommandResult:
    """
    Run an external command without a shell and capture its output

    The process is killed and reaped when `timeout` elapses, so nothing keeps
    running after the caller gives up. OSError (e.g. missing executable)
    propagates to the caller.
    """
    logger.info("Executing command: %s", " ".join(args))
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Command timed out after %ss: %s", timeout, args[0])
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        return CommandResult(returncode=process.returncode, stdout="", stderr="", timed_out=True)
    except asyncio.CancelledError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise

    return CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
