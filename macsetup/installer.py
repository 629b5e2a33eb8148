from __future__ import annotations
import asyncio
import codecs
import re
from typing import Any, Awaitable, Callable, List, Optional

from .brew import brew_args, brew_bin
from .history import log_history
from .models import INSTALL, InstallationResult, Tool
from .progress import OutputWatcher
from .report import NullReporter

SpawnFn = Callable[..., Awaitable[Any]]

_LINE_BREAK = re.compile(r"[\r\n]")

async def spawn_brew(*cmd: str) -> Any:
    # stdin stays attached to the terminal so sudo can ask for the password
    return await asyncio.create_subprocess_exec(
        *cmd,
        stdin=None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

async def drain(stream: Any, name: str, chunks: List[str], on_line: Callable[[str, str], None]) -> None:
    """Read a pipe to EOF. curl progress bars redraw with \\r, so both \\r and \\n end a line."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        data = await stream.read(4096)
        if not data:
            break
        text = decoder.decode(data)
        chunks.append(text)
        parts = _LINE_BREAK.split(pending + text)
        pending = parts.pop()
        for line in parts:
            on_line(line, name)
    tail = decoder.decode(b"", final=True)
    if tail:
        chunks.append(tail)
    if pending + tail:
        on_line(pending + tail, name)

def _failure_text(err: str, out: str, rc: int) -> str:
    return err.strip() or out.strip() or f"Exit code {rc}"

def _record(history_path: Optional[str], mode: str, cmd: List[str], rc: int) -> None:
    if not history_path:
        return
    try:
        log_history(history_path, mode, " ".join(cmd), rc)
    except OSError:
        pass

async def _reap(proc: Any, readers: List[asyncio.Future]) -> None:
    """Stop the pipe readers and kill the child; it is gone when this returns."""
    for r in readers:
        r.cancel()
    await asyncio.gather(*readers, return_exceptions=True)
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()

async def run_tool(
    tool: Tool,
    mode: str = INSTALL,
    reporter: Any = None,
    spawn: Optional[SpawnFn] = None,
    history_path: Optional[str] = None,
) -> InstallationResult:
    """
    Install or uninstall one tool. Never raises for package-manager problems:
    a missing binary, a non-zero exit or a broken pipe all become a failed result.
    """
    reporter = reporter or NullReporter()
    cmd = [brew_bin()] + brew_args(tool, mode)
    watcher = OutputWatcher(track_progress=(mode == INSTALL))
    out: List[str] = []
    err: List[str] = []

    def on_line(line: str, stream: str) -> None:
        for ev in watcher.feed(line, stream):
            reporter.event(tool, ev)

    reporter.start(tool, mode)
    try:
        proc = await (spawn or spawn_brew)(*cmd)
        readers = [
            asyncio.ensure_future(drain(proc.stdout, "stdout", out, on_line)),
            asyncio.ensure_future(drain(proc.stderr, "stderr", err, on_line)),
        ]
        try:
            await asyncio.gather(*readers)
            rc = await proc.wait()
        finally:
            if proc.returncode is None or not all(r.done() for r in readers):
                await _reap(proc, readers)
    except Exception as e:
        result = InstallationResult(tool=tool, success=False, error=str(e) or type(e).__name__)
        _record(history_path, mode, cmd, -1)
        reporter.finish(result, mode)
        return result

    if rc == 0:
        result = InstallationResult(tool=tool, success=True)
    else:
        result = InstallationResult(tool=tool, success=False, error=_failure_text("".join(err), "".join(out), rc))
    _record(history_path, mode, cmd, rc)
    reporter.finish(result, mode)
    return result

async def run_all(
    tools: List[Tool],
    mode: str = INSTALL,
    reporter: Any = None,
    spawn: Optional[SpawnFn] = None,
    history_path: Optional[str] = None,
) -> List[InstallationResult]:
    # strictly sequential, never two brew processes at once
    reporter = reporter or NullReporter()
    reporter.batch_start(mode, len(tools))
    results: List[InstallationResult] = []
    for tool in tools:
        results.append(await run_tool(tool, mode, reporter, spawn, history_path))
    return results

def exit_code(*batches: List[InstallationResult]) -> int:
    return 1 if any(not r.success for batch in batches for r in batch) else 0
