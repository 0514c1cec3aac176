"""Fan-out helper for independent read queries."""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping


def run_concurrently(tasks: Mapping[str, Callable[[], Any]], max_workers: int = 4) -> dict[str, Any]:
    """Run zero-argument callables in parallel and return their results by name.

    The first exception raised by any task propagates once all tasks are submitted.
    """
    if not tasks:
        return {}
    workers = max(1, min(max_workers, len(tasks)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {name: executor.submit(task) for name, task in tasks.items()}
        return {name: future.result() for name, future in futures.items()}
