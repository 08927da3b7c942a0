"""Check that the app under test accepts connections before running tests."""

import asyncio
import logging

from yarl import URL

log = logging.getLogger(__name__)


class OriginUnreachableError(RuntimeError):
    """Raised when nothing accepts connections at the app URL."""


def get_host_and_port(app_url: str) -> tuple[str, int]:
    """Host and port a URL connects to, with the scheme's default port."""
    url = URL(app_url)
    if url.host is None:
        raise ValueError(f"Invalid app URL: '{app_url}'")
    port = url.port if url.port is not None else 443 if url.scheme == "https" else 80
    return url.host, port


async def can_connect(host: str, port: int, timeout: float = 5) -> bool:
    """Whether a TCP connection to host:port can be opened."""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, TimeoutError) as e:
        log.debug("Cannot connect to %s:%d: %s", host, port, e)
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def throw_if_cannot_connect_to_origin(app_url: str, timeout: float = 10) -> None:
    """Fail fast when the app is not reachable.

    Raises:
        OriginUnreachableError: If no TCP connection can be opened

    """
    host, port = get_host_and_port(app_url)
    if await can_connect(host, port, timeout=timeout):
        log.debug("Connected to %s:%d", host, port)
        return

    raise OriginUnreachableError(
        f"Could not connect to '{host}:{port}'. Please check:\n"
        f"1. The server running at {app_url} has fully started by the time "
        "the tests start.\n"
        f"2. The server is listening on port {port}.\n"
        "3. The hostname resolves from the machine running the tests; use "
        "'localhost-aliases' for names that only exist locally."
    )
