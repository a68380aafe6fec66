from concurrent.futures import Executor, Future

import pytest


class DeferredExecutor(Executor):
    """Executor that holds submitted work until ``run`` is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run(self, count=None):
        count = len(self.pending) if count is None else count
        batch, self.pending = self.pending[:count], self.pending[count:]
        for future, fn, args, kwargs in batch:
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)


@pytest.fixture
def deferred_executor():
    return DeferredExecutor()
