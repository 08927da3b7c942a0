"""Tests for localhost aliases and the IPv6 proxy decision."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from report_diffs_action.localhost import add_localhost_aliases, spin_up_proxy_if_needed


def mock_process(returncode: int = 0, stderr: bytes = b"") -> Mock:
    process = Mock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(b"", stderr))
    return process


class TestAddLocalhostAliases:
    """Tests for add_localhost_aliases."""

    async def test_appends_aliases_to_hosts_file(self, tmp_path: Path) -> None:
        """Pipes one line per alias into `sudo tee -a`."""
        hosts_file = tmp_path / "hosts"
        process = mock_process()

        with patch(
            "asyncio.create_subprocess_exec", AsyncMock(return_value=process)
        ) as create:
            await add_localhost_aliases(
                app_url="http://app.local:3000",
                localhost_aliases=["app.local", "api.local"],
                hosts_file=hosts_file,
            )

        assert create.call_args.args == ("sudo", "tee", "-a", str(hosts_file))
        process.communicate.assert_called_once_with(
            b"127.0.0.1 app.local\n127.0.0.1 api.local\n"
        )

    async def test_no_aliases(self) -> None:
        """Does not touch the hosts file without aliases."""
        with patch("asyncio.create_subprocess_exec") as create:
            await add_localhost_aliases(
                app_url="http://localhost:3000", localhost_aliases=[]
            )

        create.assert_not_called()

    async def test_raises_when_tee_fails(self, tmp_path: Path) -> None:
        """Raises with the error output of the failed command."""
        process = mock_process(returncode=1, stderr=b"sudo: a password is required\n")

        with (
            patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)),
            pytest.raises(RuntimeError, match="a password is required"),
        ):
            await add_localhost_aliases(
                app_url=None,
                localhost_aliases=["app.local"],
                hosts_file=tmp_path / "hosts",
            )


class TestSpinUpProxyIfNeeded:
    """Tests for deciding whether to proxy IPv4 to IPv6."""

    async def test_not_localhost(self) -> None:
        """Never proxies remote hosts."""
        with patch("report_diffs_action.localhost.can_connect") as can_connect:
            async with spin_up_proxy_if_needed("https://app.example.com") as proxied:
                assert proxied is False

        can_connect.assert_not_called()

    async def test_ipv4_reachable(self) -> None:
        """Does not proxy when the server listens on IPv4."""
        with patch(
            "report_diffs_action.localhost.can_connect",
            AsyncMock(return_value=True),
        ):
            async with spin_up_proxy_if_needed("http://localhost:3000") as proxied:
                assert proxied is False

    async def test_nothing_listening(self) -> None:
        """Does not proxy when the server is not up on either address."""
        with patch(
            "report_diffs_action.localhost.can_connect",
            AsyncMock(return_value=False),
        ):
            async with spin_up_proxy_if_needed("http://localhost:3000") as proxied:
                assert proxied is False

    async def test_ipv6_only(self) -> None:
        """Starts a proxy when only ::1 accepts connections."""
        server = Mock()
        server.wait_closed = AsyncMock()

        async def can_connect(host: str, port: int) -> bool:
            return host == "::1"

        with (
            patch("report_diffs_action.localhost.can_connect", can_connect),
            patch(
                "asyncio.start_server", AsyncMock(return_value=server)
            ) as start_server,
        ):
            async with spin_up_proxy_if_needed("http://localhost:3000") as proxied:
                assert proxied is True
                server.close.assert_not_called()

        assert start_server.call_args.kwargs == {"host": "127.0.0.1", "port": 3000}
        server.close.assert_called_once()
        server.wait_closed.assert_called_once()
