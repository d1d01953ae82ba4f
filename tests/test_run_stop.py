"""Tests for in-process stop handling and termination."""

import asyncio
import logging
import os
import signal
import sys
import threading

import pytest

from os_service.context import OrchestratorContext
from os_service.errors import NativeBindingError
from os_service.manager import ServiceManager
from os_service.native import load_native_binding

# =============================================================================
# POSIX
# =============================================================================


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestRunPosix:
    def test_sigterm_calls_on_stop(self, make_manager, binding, restore_signals):
        manager = make_manager("linux")
        calls = []

        manager.run(lambda: calls.append("stop"))
        signal.raise_signal(signal.SIGTERM)

        assert calls == ["stop"]
        assert binding.run_calls == 0

    def test_sigint_calls_on_stop(self, make_manager, restore_signals):
        manager = make_manager("linux")
        calls = []

        manager.run(lambda: calls.append("stop"))
        signal.raise_signal(signal.SIGINT)

        assert calls == ["stop"]

    def test_second_run_does_not_register_again(self, make_manager, restore_signals):
        manager = make_manager("linux")
        calls = []

        manager.run(lambda: calls.append("first"))
        manager.run(lambda: calls.append("second"))
        signal.raise_signal(signal.SIGTERM)

        assert calls == ["first"]
        assert manager.context.run_initialised is True

    def test_handler_is_one_shot(self, make_manager, restore_signals):
        previous = signal.getsignal(signal.SIGTERM)
        manager = make_manager("linux")

        manager.run(lambda: None)
        assert signal.getsignal(signal.SIGTERM) is not previous

        signal.raise_signal(signal.SIGTERM)
        assert signal.getsignal(signal.SIGTERM) == previous

    def test_run_returns_immediately(self, make_manager, restore_signals):
        manager = make_manager("linux")

        assert manager.run(lambda: None) is None

    @pytest.mark.asyncio
    async def test_sigterm_wakes_waiting_event_loop(self, make_manager, restore_signals):
        manager = make_manager("linux")
        stopped = asyncio.Event()

        manager.run(stopped.set)
        sender = threading.Timer(0.1, os.kill, (os.getpid(), signal.SIGTERM))
        sender.start()

        await asyncio.wait_for(stopped.wait(), timeout=2)
        sender.join()

    @pytest.mark.asyncio
    async def test_event_loop_handler_is_one_shot(self, make_manager, restore_signals):
        manager = make_manager("linux")
        calls = []

        manager.run(lambda: calls.append("stop"))
        signal.raise_signal(signal.SIGTERM)
        await asyncio.sleep(0.05)

        assert calls == ["stop"]
        assert signal.getsignal(signal.SIGTERM) == signal.SIG_DFL


# =============================================================================
# Windows
# =============================================================================


class TestRunWindows:
    def test_hands_process_to_dispatcher(self, make_manager, binding):
        manager = make_manager("win32", poll_interval=0.01)

        manager.run(lambda: None)

        assert binding.run_calls == 1
        assert manager.context.stop_poller.active
        manager.context.cancel_stop_poller()

    def test_stop_request_calls_on_stop(self, make_manager, binding):
        manager = make_manager("win32", poll_interval=0.01)
        stopped = threading.Event()

        manager.run(stopped.set)
        binding.stop_requested = True

        assert stopped.wait(timeout=2)

    def test_second_run_reuses_poller(self, make_manager, binding):
        manager = make_manager("win32", poll_interval=0.01)
        calls = []

        manager.run(lambda: calls.append("first"))
        poller = manager.context.stop_poller
        manager.run(lambda: calls.append("second"))

        assert manager.context.stop_poller is poller
        assert binding.run_calls == 2
        manager.context.cancel_stop_poller()

    @pytest.mark.asyncio
    async def test_on_stop_runs_on_event_loop(self, make_manager, binding):
        manager = make_manager("win32", poll_interval=0.01)
        fired = asyncio.Event()
        threads = []

        def on_stop():
            threads.append(threading.get_ident())
            fired.set()

        manager.run(on_stop)
        binding.stop_requested = True

        await asyncio.wait_for(fired.wait(), timeout=2)
        assert threads == [threading.get_ident()]

    @pytest.mark.asyncio
    async def test_enable_cancels_poller(self, make_manager, binding, runner):
        manager = make_manager("win32", poll_interval=0.01)
        calls = []

        manager.run(lambda: calls.append("stop"))
        poller = manager.context.stop_poller
        await manager.enable("foo")

        assert not poller.active
        binding.stop_requested = True
        await asyncio.sleep(0.1)

        assert calls == []
        assert runner.calls == [("net", "start", "foo")]

    @pytest.mark.asyncio
    async def test_disable_cancels_poller(self, make_manager, binding):
        manager = make_manager("win32", poll_interval=0.01)

        manager.run(lambda: None)
        poller = manager.context.stop_poller
        await manager.disable("foo")

        assert not poller.active

    def test_failed_stop_check_keeps_polling(
        self, make_manager, binding, monkeypatch, caplog
    ):
        manager = make_manager("win32", poll_interval=0.01)
        stopped = threading.Event()
        checks = []

        def is_stop_requested():
            checks.append(True)
            if len(checks) == 1:
                raise NativeBindingError("query", "The handle is invalid", winerror=6)
            return True

        monkeypatch.setattr(binding, "is_stop_requested", is_stop_requested)

        with caplog.at_level(logging.ERROR, logger="os_service.context"):
            manager.run(stopped.set)
            assert stopped.wait(timeout=2)

        assert len(checks) == 2
        assert "Checking for an SCM stop request failed" in caplog.text


# =============================================================================
# Stop
# =============================================================================


class TestStop:
    def test_exits_with_code(self, make_manager):
        with pytest.raises(SystemExit) as exc_info:
            make_manager("linux").stop(3)

        assert exc_info.value.code == 3

    def test_default_code(self, make_manager):
        with pytest.raises(SystemExit) as exc_info:
            make_manager("linux").stop()

        assert exc_info.value.code == 0

    def test_posix_does_not_touch_binding(self, make_manager, binding):
        with pytest.raises(SystemExit):
            make_manager("darwin").stop(1)

        assert binding.stop_codes == []

    def test_windows_reports_to_scm_first(self, make_manager, binding):
        with pytest.raises(SystemExit) as exc_info:
            make_manager("win32").stop(2)

        assert binding.stop_codes == [2]
        assert exc_info.value.code == 2

    def test_exits_when_scm_report_fails(self, make_manager, binding, monkeypatch, caplog):
        def stop(exit_code):
            raise NativeBindingError("stop", "The handle is invalid", winerror=6)

        monkeypatch.setattr(binding, "stop", stop)

        with caplog.at_level(logging.ERROR, logger="os_service.manager"):
            with pytest.raises(SystemExit) as exc_info:
                make_manager("win32").stop(3)

        assert exc_info.value.code == 3
        assert "Could not report stop to the service manager" in caplog.text

    def test_exits_when_binding_cannot_load(self, runner):
        def loader():
            raise NativeBindingError("load", "pywin32 is not installed")

        context = OrchestratorContext(
            platform_id="win32", runner=runner, binding_loader=loader
        )

        with pytest.raises(SystemExit) as exc_info:
            ServiceManager(context).stop(1)

        assert exc_info.value.code == 1


@pytest.mark.skipif(sys.platform == "win32", reason="pywin32 may be installed")
class TestNativeBinding:
    def test_unavailable_off_windows(self):
        with pytest.raises(NativeBindingError) as exc_info:
            load_native_binding()

        assert exc_info.value.call == "load"
