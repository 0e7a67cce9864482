import os
import shutil
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional, Union

from .compositor import composite
from .config import Config
from .errors import UnsupportedFormatError
from .logger import get_logger
from .planner import OutputPlan, plan
from .probe import size_of

_logger = get_logger("pipeline")

ACCEPTED_EXTENSIONS = (".jpg", ".jpeg")
TMP_SUFFIX = ".tmp"

EVENT_SHRINKED = "isShrinked"
EVENT_ERROR = "error"

STATUS_BUSY = "I am shrinking for you"
UNSUPPORTED_MESSAGE = "Only JPG allowed"
WRITE_FAILED_MESSAGE = "I'm not able to write your new image. Sorry! Error: {error}"


def _noop(*args: Any) -> None:
    pass


@dataclass
class JobContext:
    """Hooks into the desktop shell.

    ``emit`` receives the ``isShrinked``/``error`` events. Every hook is best
    effort: a failing hook is logged and never fails the job.
    """

    emit: Callable[..., None] = _noop
    show_error: Callable[[str], None] = _noop
    focus: Callable[[], None] = _noop
    set_status: Callable[[str], None] = _noop
    add_recent_document: Callable[[str], None] = _noop


@dataclass(frozen=True)
class ImageJob:
    source_path: Path
    display_name: str
    original_size: int


@dataclass(frozen=True)
class JobResult:
    display_name: str
    output_path: Optional[Path]
    original_size: Optional[int]
    result_size: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_supported(name: Union[str, Path]) -> bool:
    return Path(name).suffix.lower() in ACCEPTED_EXTENSIONS


def needs_staging(config: Config) -> bool:
    """Without suffix or subfolder the output path can be the input path."""
    return not config.append_suffix and not config.use_subfolder


@contextmanager
def staged_copy(source_path: Path, destination: Path, enabled: bool) -> Iterator[Path]:
    """Yield the path to read from, copying the source next to ``destination`` if enabled.

    The copy is removed on exit, whether or not the body raised.
    """
    if not enabled:
        yield source_path
        return

    tmp_path = destination.with_name(destination.name + TMP_SUFFIX)
    shutil.copyfile(source_path, tmp_path)
    try:
        yield tmp_path
    finally:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass


class Pipeline:
    """Watermarks dropped JPEG files and reports the outcome to a JobContext."""

    def __init__(
        self,
        config: Config,
        context: Optional[JobContext] = None,
        watermark_path: Optional[Union[str, Path]] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config
        self.context = context or JobContext()
        self.watermark_path = Path(watermark_path or config.watermark_path)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        # Entries vanish once no job holds the lock
        self._path_locks: "weakref.WeakValueDictionary[Path, threading.Lock]" = weakref.WeakValueDictionary()
        self._path_locks_lock = threading.Lock()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def _call_hook(self, name: str, *args: Any) -> None:
        try:
            getattr(self.context, name)(*args)
        except Exception as exc:
            _logger.warning("%s hook failed: %s", name, exc)

    def _lock_for(self, path: Path) -> threading.Lock:
        key = Path(os.path.abspath(path))
        with self._path_locks_lock:
            lock = self._path_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._path_locks[key] = lock
            return lock

    def _fail(
        self,
        display_name: str,
        output_path: Optional[Path],
        original_size: Optional[int],
        error: BaseException,
        message: str,
    ) -> JobResult:
        _logger.error("%s: %s", display_name, error)
        self._call_hook("emit", EVENT_ERROR)
        self._call_hook("show_error", message)
        return JobResult(
            display_name=display_name,
            output_path=output_path,
            original_size=original_size,
            error=error,
        )

    def _run(self, job: ImageJob, output: OutputPlan) -> int:
        with self._lock_for(output.full_path):
            with staged_copy(job.source_path, output.full_path, needs_staging(self.config)) as read_path:
                return composite(read_path, self.watermark_path, output.full_path, self.config.quality)

    def process(self, source_path: Union[str, Path], display_name: Optional[str] = None) -> JobResult:
        """Watermark one file. Errors are reported, never raised."""
        source_path = Path(source_path)
        display_name = display_name or source_path.name

        self._call_hook("focus")
        self._call_hook("set_status", STATUS_BUSY)

        try:
            original_size = size_of(source_path)
        except OSError as exc:
            return self._fail(display_name, None, None, exc, WRITE_FAILED_MESSAGE.format(error=exc))

        self._call_hook("add_recent_document", str(source_path))

        if not is_supported(display_name):
            exc = UnsupportedFormatError(f"{display_name} is not a JPEG file")
            return self._fail(display_name, None, original_size, exc, UNSUPPORTED_MESSAGE)

        job = ImageJob(source_path=source_path, display_name=display_name, original_size=original_size)
        output_path = None
        try:
            output = plan(job.source_path, self.config)
            output_path = output.full_path
            result_size = self._run(job, output)
        except Exception as exc:
            message = WRITE_FAILED_MESSAGE.format(error=exc)
            return self._fail(display_name, output_path, original_size, exc, message)

        _logger.info("%s -> %s (%d -> %d bytes)", display_name, output_path, original_size, result_size)
        self._call_hook("emit", EVENT_SHRINKED, str(output_path), original_size, result_size)
        return JobResult(
            display_name=display_name,
            output_path=output_path,
            original_size=original_size,
            result_size=result_size,
        )

    def shrink_image(self, display_name: str, source_path: Union[str, Path]) -> JobResult:
        return self.process(source_path, display_name)

    def process_many(self, paths: Iterable[Union[str, Path]]) -> List[JobResult]:
        """Run several files through the pipeline in parallel."""
        futures = [self.submit(path) for path in paths]
        return [future.result() for future in futures]

    def submit(self, source_path: Union[str, Path], display_name: Optional[str] = None) -> "Future[JobResult]":
        """Run a job on a worker thread."""
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="jpegmark")
            return self._executor.submit(self.process, source_path, display_name)

    def shutdown(self) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
