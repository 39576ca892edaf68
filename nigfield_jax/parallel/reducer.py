# nigfield_jax/parallel/reducer.py
"""
Slice-parallel reductions over an index range.

A reducer partitions [0, n) into contiguous slices, computes one partial
aggregate per slice independently and combines the partials in slice order.
`combine` must be associative and side-effect free (here: adding log-density
terms), so every slice count gives the same value up to floating-point
reassociation.

Failure semantics: if any slice raises, pending slices are cancelled and the
first exception in slice order is re-raised. No partial result is returned.

The density code only sees the `ParallelReducer` protocol, so the concurrency
strategy can be swapped (sequential, thread pool) without touching numerics.
"""
from __future__ import annotations

import functools
import operator
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..utils.logging import get_logger

logger = get_logger(__name__)

SliceFn = Callable[[int, int], Any]


def partition(n: int, n_slices: int) -> List[Tuple[int, int]]:
    """
    Split [0, n) into at most `n_slices` contiguous, balanced slices.

    Slice sizes differ by at most one; empty slices are dropped.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    n_slices = max(1, min(int(n_slices), n))
    bounds = [(k * n) // n_slices for k in range(n_slices + 1)]
    return [(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]


def _combine_partials(partials, combine, identity):
    if not partials:
        if identity is None:
            raise ValueError("Cannot reduce an empty range without an identity")
        return identity
    return functools.reduce(combine, partials)


@runtime_checkable
class ParallelReducer(Protocol):
    """
    Protocol for slice reducers.

    - `map_slices(n, fn)` evaluates fn(lo, hi) on every slice, results in slice order.
    - `map_reduce(n, fn, combine, identity)` combines those results.
    - `reduce(values, combine, identity)` reduces a sequence of values.
    """

    def map_slices(self, n: int, fn: SliceFn) -> list:
        ...

    def map_reduce(self, n: int, fn: SliceFn, combine=operator.add, identity=None) -> Any:
        ...

    def reduce(self, values: Sequence, combine=operator.add, identity=None) -> Any:
        ...


class _SliceReducer:
    """Shared reduce logic; subclasses implement `map_slices`."""

    def map_slices(self, n: int, fn: SliceFn) -> list:
        raise NotImplementedError

    def map_reduce(self, n: int, fn: SliceFn, combine=operator.add, identity=None) -> Any:
        return _combine_partials(self.map_slices(n, fn), combine, identity)

    def reduce(self, values: Sequence, combine=operator.add, identity=None) -> Any:
        def slice_fn(lo, hi):
            return functools.reduce(combine, values[lo:hi])

        return self.map_reduce(len(values), slice_fn, combine, identity)


class SequentialReducer(_SliceReducer):
    """
    Evaluates slices one after another in the calling thread.

    `n_slices` only changes the association order of the result, which makes
    this a reference for the parallel reducers.
    """

    def __init__(self, n_slices: int = 1):
        self.n_slices = n_slices

    def map_slices(self, n: int, fn: SliceFn) -> list:
        return [fn(lo, hi) for lo, hi in partition(n, self.n_slices)]


class ThreadPoolReducer(_SliceReducer):
    """
    Evaluates slices on a thread pool.

    Slice count is `n_workers`, reduced so that no slice is smaller than
    `min_slice_size` elements. Workers only read shared inputs and return
    private partials. The executor is created on first use and shared by
    concurrent callers; call `close()` (or use the reducer as a context
    manager) to release it.
    """

    def __init__(self, n_workers: Optional[int] = None, min_slice_size: int = 1):
        self.n_workers = n_workers or os.cpu_count() or 1
        self.min_slice_size = max(1, int(min_slice_size))
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.n_workers, thread_name_prefix="nigfield-reduce"
                )
            return self._executor

    def slices(self, n: int) -> List[Tuple[int, int]]:
        n_slices = min(self.n_workers, max(1, n // self.min_slice_size))
        return partition(n, n_slices)

    def map_slices(self, n: int, fn: SliceFn) -> list:
        bounds = self.slices(n)
        if len(bounds) <= 1:
            return [fn(lo, hi) for lo, hi in bounds]

        executor = self._get_executor()
        futures = [executor.submit(fn, lo, hi) for lo, hi in bounds]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        if pending:
            for future in pending:
                future.cancel()
            # let running slices finish before re-raising
            wait(pending)
        for future in futures:
            if future.cancelled():
                continue
            exc = future.exception()
            if exc is not None:
                logger.debug("Slice reduction aborted after %d slices: %s", len(done), exc)
                raise exc
        return [future.result() for future in futures]

    def close(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def get_reducer(n_workers: Optional[int] = None, min_slice_size: int = 1) -> ParallelReducer:
    """
    Reducer factory.

    n_workers == 1 gives a SequentialReducer; otherwise a ThreadPoolReducer
    with `n_workers` threads (default: os.cpu_count()).
    """
    if n_workers == 1:
        return SequentialReducer()
    return ThreadPoolReducer(n_workers=n_workers, min_slice_size=min_slice_size)


__all__ = [
    "ParallelReducer",
    "SequentialReducer",
    "ThreadPoolReducer",
    "get_reducer",
    "partition",
]
