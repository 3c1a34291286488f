"""
Utility functions for kube-dump.

Logging Level Standards:
------------------------
- ERROR: Per-resource fetch failures and fatal stage failures
         "Error processing resource pods: exit status 1"
- WARNING: Loose config file permissions, unexpected worker exceptions
- INFO: Progress messages, resource counts
        "Found 42 API resource types"
- DEBUG: Individual kubectl command lines
"""
import logging
import os
import shutil
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from kubedump.constants import (
    COMBINED_LOG_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    KUBECTL,
    LOG_SEPARATOR,
)
from kubedump.k8s import fetch_resource
from kubedump.models import CommandOutput, FetchSummary, Resource

logger = logging.getLogger(__name__)

FetchFn = Callable[[Resource, str, Optional[str], str], CommandOutput]


# =============================================================================
# Progress Tracking
# =============================================================================

class ProgressTracker:
    """
    Progress tracker for the fetch fan-out with rich display.

    Falls back to simple print statements if stdout is not a TTY
    (e.g., when piping output) or progress display is disabled.

    Usage:
        with ProgressTracker(total=len(resources)) as tracker:
            summary = fan_out_fetch(resources, output_dir, tracker=tracker)
    """

    def __init__(self, total: int = 0, show_progress: bool = True):
        self.total = total
        self.show_progress = show_progress and sys.stdout.isatty()

        # Counters
        self.completed = 0
        self.succeeded = 0
        self.failed = 0
        self.current_task = ""

        self._console: Optional[Console] = None
        self._progress: Optional[Progress] = None
        self._main_task: Optional[TaskID] = None

    def __enter__(self):
        if self.show_progress:
            self._console = Console()
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=self._console,
                transient=False,
            )
            self._main_task = self._progress.add_task("Fetching resources", total=self.total or 1)
            self._progress.start()
        else:
            print(f"\n{'='*60}")
            print("Resource Fetch Starting")
            print(f"{'='*60}")
            print(f"Resource types: {self.total}")
            print()

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._progress is not None:
            assert self._console is not None
            self._progress.stop()
            self._console.print()
            self._print_summary_rich()
        else:
            self._print_summary_plain()
        return False

    def update_task(self, task_description: str):
        """Update the current task being performed."""
        self.current_task = task_description
        if self._progress is not None:
            assert self._main_task is not None
            self._progress.update(self._main_task, description=task_description)

    def complete_resource(self, output: CommandOutput):
        """Record one finished fetch."""
        self.completed += 1
        if output.ok:
            self.succeeded += 1
        else:
            self.failed += 1
        if self._progress is not None:
            assert self._main_task is not None
            self._progress.update(
                self._main_task,
                advance=1,
                description=f"Fetched {output.resource_name}"
            )

    def _print_summary_rich(self):
        """Print a formatted summary using rich."""
        table = Table(title="Resource Fetch Summary", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Resource Types", f"{self.total:,}")
        table.add_row("Fetched", f"{self.succeeded:,}")
        table.add_row("Failed", f"[red]{self.failed:,}[/red]" if self.failed else "0")

        assert self._console is not None
        self._console.print(Panel(table))

    def _print_summary_plain(self):
        """Print a plain text summary."""
        print(f"\n{'='*60}")
        print("Resource Fetch Complete")
        print(f"{'='*60}")
        print(f"  Resource Types: {self.total:,}")
        print(f"  Fetched:        {self.succeeded:,}")
        print(f"  Failed:         {self.failed:,}")
        print()


# =============================================================================
# Fan-Out
# =============================================================================

def fan_out_fetch(
    resources: List[Resource],
    output_dir: str,
    max_workers: int = DEFAULT_MAX_WORKERS,
    context: Optional[str] = None,
    kubectl: str = KUBECTL,
    fetch_fn: FetchFn = fetch_resource,
    tracker: Optional[ProgressTracker] = None
) -> FetchSummary:
    """
    Fetch every resource type with at most `max_workers` fetches in flight.

    Resources are submitted in list order; they complete in whatever order
    the subprocesses finish. A failed fetch is logged and recorded but never
    stops the others.

    Args:
        resources: Resource types to fetch
        output_dir: Directory receiving one <name>.log per resource
        max_workers: Maximum number of concurrent fetches (>= 1)
        context: Optional kubectl context
        kubectl: kubectl binary
        fetch_fn: Fetch implementation, called as fetch_fn(resource, output_dir, context, kubectl)
        tracker: Optional ProgressTracker for UI updates

    Returns:
        FetchSummary with one CommandOutput per resource, in input order

    Raises:
        ValueError: If max_workers is less than 1
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    print("Parsed resources:")
    logger.info(f"Fetching {len(resources)} resource types with {max_workers} workers")
    if tracker:
        tracker.update_task(f"Fetching resources ({max_workers} workers)...")

    outcomes: Dict[int, CommandOutput] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(fetch_fn, resource, output_dir, context, kubectl): (index, resource)
            for index, resource in enumerate(resources)
        }

        for future in as_completed(futures):
            index, resource = futures[future]
            try:
                output = future.result()
            except Exception as e:
                logger.warning(f"Fetch of {resource.name} raised unexpectedly: {e}")
                output = CommandOutput(
                    resource_name=resource.name,
                    command_log="",
                    stderr=f"unexpected error: {e}"
                )

            if not output.ok:
                logger.error(f"Error processing resource {resource.name}: {output.stderr}")

            outcomes[index] = output
            if tracker:
                tracker.complete_resource(output)

    summary = FetchSummary(outputs=[outcomes[i] for i in range(len(resources))])
    logger.info(f"Fetched {len(summary.succeeded)}/{len(resources)} resource types")
    return summary


# =============================================================================
# Log Aggregation
# =============================================================================

class AggregationError(Exception):
    """Raised when the combined log cannot be built."""


def _raise_walk_error(err: OSError) -> None:
    raise err


def concatenate_logs(
    output_dir: str,
    log_name: str = COMBINED_LOG_NAME,
    exclude: Iterable[str] = ()
) -> str:
    """
    Concatenate every file under output_dir into output_dir/log_name.

    Files are visited recursively in sorted order and each is followed by a
    blank line. The combined log itself and any path in `exclude` (e.g. the
    tool's own --log-file) are skipped.

    Returns:
        Path of the combined log

    Raises:
        AggregationError: If the directory cannot be walked or a file cannot
            be read or written
    """
    log_path = os.path.join(output_dir, log_name)
    skipped = {os.path.abspath(log_path)}
    skipped.update(os.path.abspath(path) for path in exclude if path)

    try:
        log_f = open(log_path, 'wb')
    except OSError as e:
        raise AggregationError(f"error creating log file {log_path}: {e}") from e

    with log_f:
        try:
            for dirpath, dirnames, filenames in os.walk(output_dir, onerror=_raise_walk_error):
                dirnames.sort()
                for filename in sorted(filenames):
                    path = os.path.join(dirpath, filename)
                    if os.path.abspath(path) in skipped:
                        continue
                    with open(path, 'rb') as part:
                        shutil.copyfileobj(part, log_f)
                    log_f.write(LOG_SEPARATOR)
        except OSError as e:
            raise AggregationError(f"error walking through directory {output_dir}: {e}") from e

    print(f"Logs concatenated to file {log_path}")
    return log_path


# =============================================================================
# Logging
# =============================================================================

def setup_logging(level: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup logging configuration with console and optional file output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: If provided, also write logs to this file

    Returns:
        Logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    # Console handler (stderr)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to: {log_file}")

    return logging.getLogger(__name__)
