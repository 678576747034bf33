import threading

import pytest

from kidscreen.fetcher import LazyFetcher


def test_concurrent_callers_share_one_fetch():
    calls = []
    barrier = threading.Barrier(16)

    def fetch():
        calls.append(1)
        return {"count": len(calls)}

    fetcher = LazyFetcher(fetch)
    results = []

    def worker():
        barrier.wait()
        results.append(fetcher.get())

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(results) == 16
    assert all(r is results[0] for r in results)


def test_failure_is_cached_and_not_retried():
    calls = []

    def fetch():
        calls.append(1)
        raise ValueError("boom")

    fetcher = LazyFetcher(fetch)
    with pytest.raises(ValueError) as first:
        fetcher.get()
    with pytest.raises(ValueError) as second:
        fetcher.get()

    assert first.value is second.value
    assert len(calls) == 1
    assert fetcher.done


def test_nothing_runs_until_first_get():
    calls = []
    fetcher = LazyFetcher(lambda: calls.append(1))
    assert not fetcher.done
    assert calls == []
    fetcher.get()
    fetcher.get()
    assert calls == [1]


def test_concurrent_callers_share_one_failure():
    calls = []
    barrier = threading.Barrier(16)

    def fetch():
        calls.append(1)
        raise ConnectionError("forecast unreachable")

    fetcher = LazyFetcher(fetch)
    errors = []

    def worker():
        barrier.wait()
        try:
            fetcher.get()
        except ConnectionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(errors) == 16
    assert all(e is errors[0] for e in errors)
