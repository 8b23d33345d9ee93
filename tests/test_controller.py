# File: tests/test_controller.py
import asyncio

import pytest

from qrawler.crawler.controller import RUNNING, TERMINATED, FrontierController
from qrawler.crawler.parser import ParsedPage
from qrawler.crawler.shutdown import ShutdownCoordinator
from qrawler.crawler.url_frontier import URLFrontier
from qrawler.storage.checkpoint import CheckpointStore

A = "https://a.com/"
B = "https://a.com/b"
C = "https://a.com/c"


async def wait_until(predicate, timeout: float = 2.0):
    """Poll *predicate* until it holds, letting other tasks run."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


def make_controller(context, frontier=None, request_queue_size=4):
    if frontier is None:
        frontier = URLFrontier()
        frontier.add_url(A)
    requests = asyncio.Queue(maxsize=request_queue_size)
    parsed = asyncio.Queue()
    shutdown = ShutdownCoordinator()
    controller = FrontierController(
        frontier, requests, parsed,
        checkpoint_store=context.checkpoint_store,
        history=context.history,
        shutdown=shutdown,
        stats_interval=0,
    )
    return controller, requests, parsed, shutdown


@pytest.mark.asyncio()
async def test_merge_after_one_cycle(context):
    controller, *_ = make_controller(context)
    controller.frontier.pop()  # A dispatched

    added = controller.merge(ParsedPage(url=A, text=["a"], neighbors=[B, C, B, A]))

    assert added == 2
    assert list(controller.frontier.state.waiting) == [B, C]
    assert controller.frontier.state.seen == {A, B, C}
    assert controller.frontier.peek().url == B
    assert controller.stats.links_discovered == 4
    assert controller.stats.urls_enqueued == 2


@pytest.mark.asyncio()
async def test_restart_resumes_identical_state(context):
    controller, *_ = make_controller(context)
    controller.frontier.pop()
    controller.merge(ParsedPage(url=A, neighbors=[B, C]))
    controller.checkpoint()
    assert controller.state == TERMINATED

    restored = URLFrontier(CheckpointStore(str(context.checkpoint_store.path)).load())
    assert list(restored.state.waiting) == [B, C]
    assert restored.state.seen == {A, B, C}
    assert restored.pop().url == B


@pytest.mark.asyncio()
async def test_dispatches_in_fifo_order(context):
    controller, requests, parsed, shutdown = make_controller(context)
    task = asyncio.create_task(controller.run())

    first = await asyncio.wait_for(requests.get(), timeout=2)
    await parsed.put(ParsedPage(url=A, neighbors=[B, C, A]))
    second = await asyncio.wait_for(requests.get(), timeout=2)
    third = await asyncio.wait_for(requests.get(), timeout=2)

    assert [first.url, second.url, third.url] == [A, B, C]

    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)
    assert controller.state == TERMINATED


@pytest.mark.asyncio()
async def test_empty_frontier_waits_for_parsed_pages(context):
    controller, requests, parsed, shutdown = make_controller(context, frontier=URLFrontier())
    task = asyncio.create_task(controller.run())

    await asyncio.sleep(0.05)
    assert requests.empty()
    assert controller.state == RUNNING

    await parsed.put(ParsedPage(url=A, neighbors=[B]))
    request = await asyncio.wait_for(requests.get(), timeout=2)
    assert request.url == B

    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio()
async def test_backpressure_keeps_blocked_url_in_checkpoint(context):
    controller, requests, parsed, shutdown = make_controller(context, request_queue_size=1)
    task = asyncio.create_task(controller.run())

    assert (await asyncio.wait_for(requests.get(), timeout=2)).url == A
    await parsed.put(ParsedPage(url=A, neighbors=[B, C]))

    # B fills the single slot; C stays at the head of the frontier
    await wait_until(lambda: requests.full() and controller.stats.pages_parsed == 1)
    await asyncio.sleep(0.05)
    assert list(controller.frontier.state.waiting) == [C]

    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)

    # B was never taken by a fetcher, so it goes back ahead of C
    state = context.checkpoint_store.load()
    assert list(state.waiting) == [B, C]
    assert state.seen == {A, B, C}


@pytest.mark.asyncio()
async def test_queued_requests_are_checkpointed_at_default_capacity(context):
    controller, requests, parsed, shutdown = make_controller(context)
    task = asyncio.create_task(controller.run())

    # A is taken by a fetcher; B and C sit in the request queue
    assert (await asyncio.wait_for(requests.get(), timeout=2)).url == A
    await parsed.put(ParsedPage(url=A, neighbors=[B, C]))
    await wait_until(lambda: requests.qsize() == 2)
    assert controller.frontier.is_empty()

    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)

    state = context.checkpoint_store.load()
    assert list(state.waiting) == [B, C]
    assert state.seen == {A, B, C}
    assert requests.empty()


@pytest.mark.asyncio()
async def test_reclaimed_requests_keep_order_ahead_of_frontier(context):
    controller, requests, parsed, shutdown = make_controller(context, request_queue_size=2)
    task = asyncio.create_task(controller.run())

    # Nothing consumes requests: A and B fill the queue, C blocks at the head
    await parsed.put(ParsedPage(url=A, neighbors=[B, C]))
    await wait_until(lambda: requests.full() and controller.stats.pages_parsed == 1)
    await asyncio.sleep(0.05)

    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)

    state = context.checkpoint_store.load()
    assert list(state.waiting) == [A, B, C]
    assert state.seen == {A, B, C}


@pytest.mark.asyncio()
async def test_parsed_pages_are_recorded_in_history(context):
    controller, requests, parsed, shutdown = make_controller(context)
    task = asyncio.create_task(controller.run())

    await parsed.put(ParsedPage(url=A, text=["hello"], neighbors=[B]))
    await wait_until(lambda: controller.stats.pages_parsed == 1)
    shutdown.request("test finished")
    await asyncio.wait_for(task, timeout=2)

    assert context.history.records_written == 1
    assert '"hello"' in context.history.path.read_text(encoding="utf-8")


@pytest.mark.asyncio()
async def test_terminated_controller_cannot_run_again(context):
    controller, *_ = make_controller(context)
    controller.checkpoint()
    with pytest.raises(RuntimeError):
        await controller.run()
