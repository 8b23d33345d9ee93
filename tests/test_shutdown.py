# File: tests/test_shutdown.py
import asyncio
import os
import signal

import pytest

from qrawler.crawler.shutdown import ShutdownCoordinator


@pytest.mark.asyncio()
async def test_signal_sets_shutdown_event():
    shutdown = ShutdownCoordinator()
    shutdown.install()
    try:
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(shutdown.wait(), timeout=5)
    finally:
        shutdown.uninstall()

    assert shutdown.requested
    assert shutdown.reason == "received signal SIGTERM"


@pytest.mark.asyncio()
async def test_request_is_idempotent():
    shutdown = ShutdownCoordinator()
    assert not shutdown.requested

    shutdown.request("first")
    shutdown.request("second")

    assert shutdown.requested
    assert shutdown.reason == "first"
    await asyncio.wait_for(shutdown.wait(), timeout=1)


@pytest.mark.asyncio()
async def test_uninstall_restores_previous_handlers():
    before = signal.getsignal(signal.SIGINT)

    shutdown = ShutdownCoordinator()
    shutdown.install()
    shutdown.uninstall()

    assert signal.getsignal(signal.SIGINT) == before
