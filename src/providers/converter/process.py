"""Async subprocess runner shared by the converters.

Every external tool call goes through :func:`run_tool` so each one has a
timeout and reports failures through the ingestion error hierarchy.
"""

from __future__ import annotations

import asyncio
import shutil

import structlog

from src.utils.errors import ConversionFailedError, RuntimeUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_STDERR_LIMIT = 500


def resolve_binary(name: str) -> str:
    """Return the absolute path of *name* on ``PATH``.

    Raises
    ------
    RuntimeUnavailableError
        If the binary cannot be found.
    """
    path = shutil.which(name)
    if not path:
        raise RuntimeUnavailableError(
            f"{name} is not installed or not on PATH",
            provider_name=name,
        )
    return path


async def run_tool(args: list[str], timeout: float, tool: str) -> bytes:
    """Run *args* and return stdout; any failure raises ConversionFailedError.

    The process is killed when it outlives *timeout* seconds.
    """
    logger.debug("running_tool", tool=tool, args=args)
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise RuntimeUnavailableError(
            f"{tool} could not be started: {exc}",
            provider_name=tool,
        ) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise ConversionFailedError(
            f"{tool} timed out after {timeout:.0f}s",
            provider_name=tool,
        ) from exc

    if proc.returncode != 0:
        detail = stderr.decode(errors="replace")[:_STDERR_LIMIT].strip()
        raise ConversionFailedError(
            f"{tool} exited with status {proc.returncode}: {detail}",
            provider_name=tool,
        )
    return stdout
