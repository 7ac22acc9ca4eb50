"""Tests for the service container."""

from __future__ import annotations

import threading
import time

import pytest

from pastoral_care.core.container import ServiceContainer


class _Resource:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_resolve_builds_once_and_close_releases() -> None:
    container = ServiceContainer()
    calls: list[str] = []

    def factory(_: ServiceContainer) -> _Resource:
        calls.append("built")
        return _Resource()

    container.register("resource", factory)
    first = container.resolve("resource")

    assert container.resolve("resource") is first
    assert calls == ["built"]

    container.close()
    assert first.closed
    assert container.resolve("resource") is not first


def test_unregistered_key_raises() -> None:
    with pytest.raises(KeyError):
        ServiceContainer().resolve("missing")


def test_concurrent_resolve_builds_single_instance() -> None:
    container = ServiceContainer()
    built: list[_Resource] = []
    start = threading.Barrier(8)

    def factory(_: ServiceContainer) -> _Resource:
        time.sleep(0.01)
        resource = _Resource()
        built.append(resource)
        return resource

    container.register("resource", factory)
    results: list[_Resource] = []

    def worker() -> None:
        start.wait()
        results.append(container.resolve("resource"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(built) == 1
    assert all(result is built[0] for result in results)


def test_factories_can_resolve_other_keys() -> None:
    container = ServiceContainer()
    container.register("resource", lambda _: _Resource())
    container.register("wrapper", lambda c: ("wrapped", c.resolve("resource")))

    label, resource = container.resolve("wrapper")

    assert label == "wrapped"
    assert resource is container.resolve("resource")
