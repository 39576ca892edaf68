from .reducer import (
    ParallelReducer,
    SequentialReducer,
    ThreadPoolReducer,
    get_reducer,
    partition,
)

__all__ = [
    "ParallelReducer",
    "SequentialReducer",
    "ThreadPoolReducer",
    "get_reducer",
    "partition",
]
