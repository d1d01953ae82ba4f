"""Tests for service manager detection."""

from pathlib import Path

import aiofiles.os
import pytest

from os_service.errors import ProbeError
from os_service.strategy import Strategy, has_systemd, parse_strategy, select_strategy


class TestSelectStrategy:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("platform_id", ["win32", "cygwin"])
    async def test_windows(self, platform_id, system_root):
        assert await select_strategy(platform_id) is Strategy.WINDOWS_SCM

    @pytest.mark.asyncio
    async def test_macos(self, systemd_root):
        # The systemd directory is irrelevant off Linux
        assert await select_strategy("darwin") is Strategy.MACOS_LAUNCHD

    @pytest.mark.asyncio
    async def test_linux_with_systemd(self, systemd_root):
        assert await select_strategy("linux") is Strategy.LINUX_SYSTEMD

    @pytest.mark.asyncio
    async def test_linux_without_systemd(self, system_root):
        assert await select_strategy("linux") is Strategy.LINUX_SYSV

    @pytest.mark.asyncio
    async def test_other_unix_falls_back_to_init_scripts(self, system_root):
        assert await select_strategy("freebsd14") is Strategy.LINUX_SYSV

    @pytest.mark.asyncio
    async def test_probe_runs_on_every_call(self, system_root: Path):
        assert await select_strategy("linux") is Strategy.LINUX_SYSV

        (system_root / "usr/lib/systemd/system").mkdir(parents=True)

        assert await select_strategy("linux") is Strategy.LINUX_SYSTEMD


class TestHasSystemd:
    @pytest.mark.asyncio
    async def test_present(self, systemd_root):
        assert await has_systemd() is True

    @pytest.mark.asyncio
    async def test_absent(self, system_root):
        assert await has_systemd() is False

    @pytest.mark.asyncio
    async def test_unreadable_raises_probe_error(self, system_root, monkeypatch):
        async def denied(path, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(aiofiles.os, "stat", denied)

        with pytest.raises(ProbeError) as exc_info:
            await has_systemd()

        assert "Permission denied" in str(exc_info.value)
        assert exc_info.value.path == system_root / "usr/lib/systemd/system"

    @pytest.mark.asyncio
    async def test_probe_error_propagates_from_select(self, system_root, monkeypatch):
        async def denied(path, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(aiofiles.os, "stat", denied)

        with pytest.raises(ProbeError):
            await select_strategy("linux")


class TestParseStrategy:
    def test_known(self):
        assert parse_strategy("linux-systemd") is Strategy.LINUX_SYSTEMD
        assert parse_strategy("windows-scm") is Strategy.WINDOWS_SCM

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown strategy: upstart"):
            parse_strategy("upstart")


class TestStrategy:
    def test_only_windows_has_no_artifact(self):
        assert not Strategy.WINDOWS_SCM.writes_artifact
        assert Strategy.LINUX_SYSV.writes_artifact
        assert Strategy.LINUX_SYSTEMD.writes_artifact
        assert Strategy.MACOS_LAUNCHD.writes_artifact
