"""Make an app served on the runner reachable by the test browser."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

from yarl import URL

from report_diffs_action.connectivity import can_connect, get_host_and_port
from report_diffs_action.logs import TRACE

log = logging.getLogger(__name__)

HOSTS_FILE = Path("/etc/hosts")
LOCALHOST_NAMES = frozenset({"localhost", "127.0.0.1"})
BUFFER_SIZE = 64 * 1024


async def add_localhost_aliases(
    *,
    app_url: str | None,
    localhost_aliases: Sequence[str],
    hosts_file: Path = HOSTS_FILE,
) -> None:
    """Resolve extra hostnames (e.g. `app.local`) to 127.0.0.1.

    Apps served on the runner are sometimes only usable under a specific
    hostname, for cookies or CORS.
    """
    if not localhost_aliases:
        return

    if app_url is not None and URL(app_url).host not in LOCALHOST_NAMES:
        log.warning(
            "localhost-aliases is set but app-url %s does not point to localhost",
            app_url,
        )

    lines = "".join(f"127.0.0.1 {alias}\n" for alias in localhost_aliases)
    log.info("Adding localhost aliases: %s", ", ".join(localhost_aliases))

    process = await asyncio.create_subprocess_exec(
        "sudo",
        "tee",
        "-a",
        str(hosts_file),
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    _, stderr = await process.communicate(lines.encode())

    if process.returncode != 0:
        raise RuntimeError(
            f"Failed to add localhost aliases to {hosts_file}: "
            f"{stderr.decode().strip()}"
        )


@asynccontextmanager
async def spin_up_proxy_if_needed(app_url: str) -> AsyncGenerator[bool, None]:
    """Forward IPv4 localhost connections to a server only listening on IPv6.

    Dev servers often bind `::1` when started with `localhost`, while the
    test browser connects to 127.0.0.1. The proxy runs until the context exits.

    Yields:
        Whether a proxy was started

    """
    host, port = get_host_and_port(app_url)
    if host != "localhost":
        yield False
        return

    if await can_connect("127.0.0.1", port) or not await can_connect("::1", port):
        yield False
        return

    clients: set[asyncio.StreamWriter] = set()

    async def handle(
        reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        clients.add(writer)
        try:
            await forward_to("::1", port, reader, writer)
        finally:
            clients.discard(writer)

    server = await asyncio.start_server(handle, host="127.0.0.1", port=port)
    log.info("Server on port %d only listens on IPv6, proxying 127.0.0.1 to ::1", port)
    try:
        yield True
    finally:
        server.close()
        # wait_closed() only returns once every client connection is gone
        for writer in list(clients):
            writer.close()
        await server.wait_closed()


async def forward_to(
    host: str,
    port: int,
    client_reader: asyncio.StreamReader,
    client_writer: asyncio.StreamWriter,
) -> None:
    """Relay one client connection to host:port until either side closes."""
    try:
        upstream_reader, upstream_writer = await asyncio.open_connection(host, port)
    except OSError as e:
        log.warning("Proxy could not connect to [%s]:%d: %s", host, port, e)
        client_writer.close()
        return

    await asyncio.gather(
        pipe(client_reader, upstream_writer),
        pipe(upstream_reader, client_writer),
    )


async def pipe(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    try:
        while data := await reader.read(BUFFER_SIZE):
            writer.write(data)
            await writer.drain()
    except ConnectionError as e:
        log.log(TRACE, "Proxy connection closed: %s", e)
    finally:
        writer.close()
