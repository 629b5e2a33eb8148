import asyncio
import os
import tempfile
import unittest
from io import StringIO
from typing import Any
from unittest.mock import patch

from rich.console import Console

from macsetup.history import parse_history
from macsetup.installer import drain, exit_code, run_all, run_tool
from macsetup.models import CASK, FORMULA, INSTALL, UNINSTALL, InstallationResult, Tool
from macsetup.progress import PROGRESS, SUDO
from macsetup.report import ConsoleReporter, NullReporter

JQ = Tool("jq", "jq", FORMULA, "CLI")
TREE = Tool("tree", "tree", FORMULA, "CLI")
ZOOM = Tool("Zoom", "zoom", CASK, "Apps")


class FakeStream:
    def __init__(self, data: bytes = b"", chunk: int = 5):
        self._chunks = [data[i:i + chunk] for i in range(0, len(data), chunk)]

    async def read(self, n: int = -1) -> bytes:
        return self._chunks.pop(0) if self._chunks else b""


class HangingStream:
    """A pipe that never reaches EOF while the child lives."""

    def __init__(self):
        self.cancelled = False

    async def read(self, n: int = -1) -> bytes:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return b""


class FakeProc:
    def __init__(self, stdout: bytes = b"", stderr: Any = b"", rc: int = 0):
        self.stdout = FakeStream(stdout)
        self.stderr = stderr if isinstance(stderr, HangingStream) else FakeStream(stderr)
        self.rc = rc
        self.returncode = None
        self.killed = False

    def kill(self) -> None:
        self.killed = True
        self.rc = -9

    async def wait(self) -> int:
        self.returncode = self.rc
        return self.rc


class FakeSpawn:
    def __init__(self, *procs):
        self.procs = list(procs)
        self.calls = []
        self.spawned = []
        self.overlaps = 0

    async def __call__(self, *cmd):
        self.calls.append(list(cmd))
        self.overlaps += sum(1 for p in self.spawned if p.returncode is None)
        p = self.procs.pop(0)
        if isinstance(p, Exception):
            raise p
        self.spawned.append(p)
        return p


class Recorder(NullReporter):
    def __init__(self):
        self.events = []
        self.finished = []
        self.batches = []

    def batch_start(self, mode, count):
        self.batches.append((mode, count))

    def event(self, tool, ev):
        self.events.append(ev)

    def finish(self, result, mode):
        self.finished.append((result, mode))


class TestRunTool(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        env = patch.dict(os.environ, {"MACSETUP_BREW": "brew"})
        env.start()
        self.addCleanup(env.stop)

    async def test_success(self) -> None:
        spawn = FakeSpawn(FakeProc(stdout=b"==> Pouring jq.tar.gz\n"))
        result = await run_tool(JQ, INSTALL, spawn=spawn)
        self.assertEqual(result, InstallationResult(tool=JQ, success=True))
        self.assertEqual(spawn.calls, [["brew", "install", "jq"]])

    async def test_cask_and_uninstall_arguments(self) -> None:
        spawn = FakeSpawn(FakeProc(), FakeProc(), FakeProc())
        await run_tool(ZOOM, INSTALL, spawn=spawn)
        await run_tool(ZOOM, UNINSTALL, spawn=spawn)
        await run_tool(JQ, UNINSTALL, spawn=spawn)
        self.assertEqual(
            spawn.calls,
            [
                ["brew", "install", "--cask", "zoom"],
                ["brew", "uninstall", "--cask", "zoom"],
                ["brew", "uninstall", "jq"],
            ],
        )

    async def test_failure_prefers_stderr(self) -> None:
        spawn = FakeSpawn(FakeProc(stdout=b"==> Fetching jq\n", stderr=b"Error: jq: no bottle available!\n", rc=1))
        result = await run_tool(JQ, spawn=spawn)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Error: jq: no bottle available!")

    async def test_failure_falls_back_to_stdout_then_exit_code(self) -> None:
        spawn = FakeSpawn(FakeProc(stdout=b"something broke\n", rc=1), FakeProc(rc=3))
        first = await run_tool(JQ, spawn=spawn)
        second = await run_tool(JQ, spawn=spawn)
        self.assertEqual(first.error, "something broke")
        self.assertEqual(second.error, "Exit code 3")

    async def test_spawn_error_becomes_failed_result(self) -> None:
        spawn = FakeSpawn(FileNotFoundError(2, "No such file or directory"))
        rec = Recorder()
        result = await run_tool(JQ, spawn=spawn, reporter=rec)
        self.assertFalse(result.success)
        self.assertIn("No such file or directory", result.error)
        self.assertEqual(len(rec.finished), 1)

    async def test_reporter_error_kills_and_reaps_child(self) -> None:
        class Exploding(Recorder):
            def event(self, tool, ev):
                raise RuntimeError("display broke")

        hanging = HangingStream()
        proc = FakeProc(stdout=b"==> Pouring jq--1.7.1.arm64_sonoma.bottle.tar.gz\n", stderr=hanging)
        rec = Exploding()
        result = await run_tool(JQ, spawn=FakeSpawn(proc), reporter=rec)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "display broke")
        self.assertTrue(proc.killed)
        self.assertIsNotNone(proc.returncode)
        self.assertTrue(hanging.cancelled)
        self.assertEqual(len(rec.finished), 1)

    async def test_next_tool_waits_for_failed_child(self) -> None:
        class ExplodingOnce(Recorder):
            def event(self, tool, ev):
                if tool is JQ:
                    raise RuntimeError("display broke")

        first = FakeProc(stdout=b"==> Pouring jq\n", stderr=HangingStream())
        spawn = FakeSpawn(first, FakeProc())
        results = await run_all([JQ, TREE], INSTALL, ExplodingOnce(), spawn)
        self.assertEqual([r.success for r in results], [False, True])
        self.assertEqual(spawn.overlaps, 0)

    async def test_credential_prompt_reported_once(self) -> None:
        spawn = FakeSpawn(FakeProc(stdout=b"==> Running installer with sudo\n", stderr=b"Password:\nPassword:\n"))
        rec = Recorder()
        await run_tool(ZOOM, spawn=spawn, reporter=rec)
        self.assertEqual([e.kind for e in rec.events].count(SUDO), 1)

    async def test_carriage_return_progress(self) -> None:
        out = b"==> Downloading https://x/zoom.pkg\n##         10.0%\r#####      55.5%\r########## 100.0%\n"
        rec = Recorder()
        await run_tool(ZOOM, spawn=FakeSpawn(FakeProc(stdout=out)), reporter=rec)
        progress = [e.text for e in rec.events if e.kind == PROGRESS]
        self.assertEqual(progress, ["10.0%", "55.5%", "100.0%"])

    async def test_history_is_written(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log = os.path.join(td, "sub", "history.log")
            spawn = FakeSpawn(FakeProc(), FakeProc(rc=1))
            await run_tool(JQ, INSTALL, spawn=spawn, history_path=log)
            await run_tool(ZOOM, UNINSTALL, spawn=spawn, history_path=log)
            entries = parse_history(log)
        self.assertEqual([(e.action, e.rc) for e in entries], [("uninstall", 1), ("install", 0)])
        self.assertEqual(entries[0].command, "brew uninstall --cask zoom")


class TestRunAll(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        env = patch.dict(os.environ, {"MACSETUP_BREW": "brew"})
        env.start()
        self.addCleanup(env.stop)

    async def test_one_failure_does_not_stop_the_batch(self) -> None:
        spawn = FakeSpawn(FakeProc(), FakeProc(stderr=b"Error: boom\n", rc=1), FakeProc())
        rec = Recorder()
        results = await run_all([JQ, ZOOM, TREE], INSTALL, rec, spawn)
        self.assertEqual([r.tool for r in results], [JQ, ZOOM, TREE])
        self.assertEqual([r.success for r in results], [True, False, True])
        self.assertEqual(results[1].error, "Error: boom")
        self.assertEqual(len(spawn.calls), 3)
        self.assertEqual(rec.batches, [(INSTALL, 3)])
        self.assertEqual(exit_code(results), 1)

    async def test_empty_batch(self) -> None:
        self.assertEqual(await run_all([], UNINSTALL), [])

    async def test_console_reporter_output(self) -> None:
        buf = StringIO()
        console = Console(file=buf, width=120, color_system=None)
        spawn = FakeSpawn(
            FakeProc(stdout=b"==> Installing Cask zoom\n==> Running installer for zoom with sudo\n"),
            FakeProc(stderr=b"Error: tree: unknown\n", rc=1),
        )
        await run_all([ZOOM, TREE], INSTALL, ConsoleReporter(console), spawn)
        text = buf.getvalue()
        self.assertIn("Installing 2 tool(s)...", text)
        self.assertIn("Zoom requires sudo privileges", text)
        self.assertIn("✓ Installed Zoom", text)
        self.assertIn("✗ Failed to install tree", text)
        self.assertIn("Error: tree: unknown", text)


class TestDrain(unittest.IsolatedAsyncioTestCase):
    async def test_multibyte_split_across_chunks(self) -> None:
        data = "🍺  jq was installed\nno newline at end".encode("utf-8")
        lines, chunks = [], []
        await drain(FakeStream(data, chunk=3), "stdout", chunks, lambda l, s: lines.append((l, s)))
        self.assertEqual(lines, [("🍺  jq was installed", "stdout"), ("no newline at end", "stdout")])
        self.assertEqual("".join(chunks), data.decode("utf-8"))


class TestExitCode(unittest.TestCase):
    def test_exit_code(self) -> None:
        ok = InstallationResult(JQ, True)
        bad = InstallationResult(JQ, False, "x")
        self.assertEqual(exit_code(), 0)
        self.assertEqual(exit_code([ok], []), 0)
        self.assertEqual(exit_code([ok], [bad]), 1)


if __name__ == "__main__":
    unittest.main()
