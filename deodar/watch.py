"""Watch the project tree and rebuild on source changes."""
from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path, PurePath
from typing import Callable, Optional
import os
import signal
import threading
import time

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from core.command_runner import CommandRunner, SubprocessCommandRunner

from .build import BuildReport, compile_project
from .collector import SCRIPT_EXTENSION, STYLE_EXTENSION
from .console import Console
from .project import ProjectConfig

IGNORED_SEGMENTS = ("node_modules", "build", ".git")
COMPILED_MARKER = ".build."
_NON_CHANGE_EVENTS = frozenset({"opened", "closed_no_write"})


def is_relevant_change(path: str | os.PathLike[str], is_directory: bool = False, root: Path | None = None) -> bool:
    """Whether a change to *path* should trigger a rebuild."""

    candidate = PurePath(os.fsdecode(path))
    if root is not None:
        try:
            candidate = candidate.relative_to(root)
        except ValueError:
            pass
    if any(part in IGNORED_SEGMENTS for part in candidate.parts):
        return False
    if is_directory:
        return False
    if COMPILED_MARKER in candidate.name:
        return False
    return candidate.name.endswith(SCRIPT_EXTENSION) or candidate.name.endswith(STYLE_EXTENSION)


def wait_for_stable(
    path: Path,
    *,
    window: float = 0.1,
    poll_interval: float = 0.1,
    timeout: float = 10.0,
) -> None:
    """Block until *path*'s size and mtime stop changing for *window* seconds.

    Returns immediately once the file no longer exists.
    """

    deadline = time.monotonic() + timeout
    last: tuple[int, int] | None = None
    stable_since = time.monotonic()
    while True:
        try:
            stat = os.stat(path)
        except FileNotFoundError:
            return
        signature = (stat.st_size, stat.st_mtime_ns)
        now = time.monotonic()
        if signature != last:
            last = signature
            stable_since = now
        elif now - stable_since >= window:
            return
        if now >= deadline:
            return
        time.sleep(poll_interval)


class WatchSession:
    """Single-flight rebuild coordinator for one watch invocation.

    Events are ignored until :meth:`mark_ready` is called and while a rebuild
    is in flight; dropped events are not queued. Rebuilds run on one worker
    thread and the guard is cleared whether or not the rebuild raised.
    """

    def __init__(
        self,
        rebuild: Callable[[], object],
        *,
        console: Console,
        root: Path | None = None,
        stability_window: float = 0.1,
        poll_interval: float = 0.1,
        executor: Executor | None = None,
    ) -> None:
        self._rebuild = rebuild
        self._console = console
        self._root = root
        self._stability_window = stability_window
        self._poll_interval = poll_interval
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="deodar-rebuild")
        self._lock = threading.Lock()
        self._accepting = False
        self._rebuilding = False
        self._pending: Optional[Future] = None

    @property
    def is_accepting_events(self) -> bool:
        return self._accepting

    @property
    def is_rebuilding(self) -> bool:
        return self._rebuilding

    def mark_ready(self) -> None:
        self._accepting = True

    def handle_event(self, path: str | os.PathLike[str], is_directory: bool = False, event_type: str = "modified") -> bool:
        """Start a rebuild for a qualifying change; ``True`` when one was started."""

        if not is_relevant_change(path, is_directory, self._root):
            return False
        with self._lock:
            if not self._accepting or self._rebuilding:
                return False
            self._rebuilding = True
        try:
            self._pending = self._executor.submit(self._run, Path(os.fsdecode(path)), event_type)
        except RuntimeError:
            # Executor already shut down.
            with self._lock:
                self._rebuilding = False
            return False
        return True

    def _run(self, path: Path, event_type: str) -> None:
        try:
            self._console.info(f"[{event_type}] {self._display(path)}")
            wait_for_stable(path, window=self._stability_window, poll_interval=self._poll_interval)
            self._console.info("Rebuilding...")
            result = self._rebuild()
            if isinstance(result, BuildReport) and not result.succeeded:
                self._console.warning(f"Build finished with {len(result.failed)} failed file(s)")
            else:
                self._console.success("Build complete!")
        except Exception as exc:
            self._console.error(f"Build failed: {exc}")
        finally:
            with self._lock:
                self._rebuilding = False

    def _display(self, path: Path) -> str:
        if self._root is not None:
            try:
                return path.relative_to(self._root).as_posix()
            except ValueError:
                pass
        return str(path)

    def wait_idle(self, timeout: float | None = None) -> None:
        """Wait for the rebuild started last, if any, to finish."""
        pending = self._pending
        if pending is not None:
            pending.result(timeout=timeout)

    def close(self) -> None:
        self._accepting = False
        self._executor.shutdown(wait=True)


class RebuildEventHandler(FileSystemEventHandler):
    """Forward watchdog events to a :class:`WatchSession`."""

    def __init__(self, session: WatchSession, console: Console) -> None:
        super().__init__()
        self._session = session
        self._console = console

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _NON_CHANGE_EVENTS:
            return
        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(dest_path)
        try:
            for path in paths:
                if self._session.handle_event(path, event.is_directory, event.event_type):
                    break
        except Exception as exc:
            self._console.error(f"Watcher error: {exc}")


def _start_observer(
    observer_factory: Callable[[], Observer],
    handler: FileSystemEventHandler,
    root: Path,
    console: Console,
):
    """Start a recursive observer on *root*; ``None`` when it could not start."""

    try:
        observer = observer_factory()
        observer.schedule(handler, str(root), recursive=True)
        observer.start()
    except OSError as exc:
        console.error(f"Watcher error: {exc}")
        return None
    return observer


def run_watch(
    config: ProjectConfig,
    *,
    console: Console,
    runner: CommandRunner | None = None,
    observer_factory: Callable[[], Observer] = Observer,
    stop_event: threading.Event | None = None,
    stability_window: float = 0.1,
    check_interval: float = 1.0,
) -> int:
    """Build once, then rebuild on changes until interrupted; returns the exit code.

    Observer failures are logged and retried every *check_interval* seconds.
    Only *stop_event* (set by SIGINT/SIGTERM) ends the loop.
    """

    runner = runner or SubprocessCommandRunner()
    root = config.root

    def rebuild() -> BuildReport:
        return compile_project(root, config, False, runner=runner, console=console)

    console.info("Running initial build...")
    try:
        rebuild()
    except KeyboardInterrupt:
        console.info("Watcher closed.")
        return 0
    except Exception as exc:
        console.error(f"Initial build failed: {exc}")
        return 1
    console.success("Initial build complete!")

    stop = stop_event or threading.Event()
    previous_handlers = {}
    session = WatchSession(rebuild, console=console, root=root, stability_window=stability_window)
    handler = RebuildEventHandler(session, console)
    observer = None
    try:
        if threading.current_thread() is threading.main_thread():
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous_handlers[signum] = signal.signal(signum, lambda *_: stop.set())

        observer = _start_observer(observer_factory, handler, root, console)
        session.mark_ready()
        console.info("Watching for changes...")
        console.info("Press Ctrl+C to stop")
        while not stop.wait(check_interval):
            if observer is not None and observer.is_alive():
                continue
            if observer is not None:
                console.error("Watcher error: observer stopped unexpectedly, restarting")
            observer = _start_observer(observer_factory, handler, root, console)
    finally:
        console.info("Shutting down watcher...")
        if observer is not None:
            observer.stop()
            observer.join()
        session.close()
        for signum, previous in previous_handlers.items():
            signal.signal(signum, previous)
        console.info("Watcher closed.")
    return 0
