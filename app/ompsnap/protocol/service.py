"""Management protocol service.

Sends XML requests to an OpenVAS manager and returns the XML responses.
The default implementation drives the ``omp`` command line client.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from ompsnap.protocol.tags import iter_tags
from ompsnap.utils.shell import run_command

logger = logging.getLogger(__name__)

# Status OMP returns for an accepted create_* command
STATUS_CREATED = "201"

# Status reported when a response carries none
STATUS_UNKNOWN = "unknown"


class ProtocolError(Exception):
    """Raised when the manager cannot be reached or the client fails."""


class ProtocolService(ABC):
    """Abstract request/response channel to an OpenVAS manager.

    Implementations are used strictly sequentially: one request is
    outstanding at a time and its response is fully read before the next
    request is sent.
    """

    @abstractmethod
    def execute(self, request: str) -> str:
        """Send one XML request and return the XML response.

        Args:
            request: OMP command, e.g. ``<get_filters/>``.

        Returns:
            Raw response text.

        Raises:
            ProtocolError: If the request could not be exchanged.
        """


class OmpService(ProtocolService):
    """Protocol service backed by the ``omp`` command line client.

    Each request runs ``omp --config-file=<profile> -iX -`` with the request
    on stdin.

    Attributes:
        config_file: Connection profile passed to the client.
        binary: Client executable.
        timeout: Seconds to wait for one request.
    """

    def __init__(self, config_file: Path, *, binary: str = "omp", timeout: float = 300.0) -> None:
        self.config_file = config_file
        self.binary = binary
        self.timeout = timeout

    def execute(self, request: str) -> str:
        args = [self.binary, f"--config-file={self.config_file}", "-iX", "-"]
        logger.debug("omp request: %s", request[:200])
        try:
            result = run_command(args, input=request, timeout=self.timeout)
        except FileNotFoundError as e:
            msg = f"omp client not found: {self.binary}"
            raise ProtocolError(msg) from e
        except subprocess.TimeoutExpired as e:
            msg = f"omp did not answer within {self.timeout:g} seconds"
            raise ProtocolError(msg) from e
        except UnicodeDecodeError as e:
            msg = f"omp returned undecodable output: {e}"
            raise ProtocolError(msg) from e

        if not result.success:
            msg = f"omp exited with status {result.returncode}: {result.detail}"
            raise ProtocolError(msg)

        return result.stdout


def response_status(response: str, command: str) -> tuple[str, str | None]:
    """Read status and new identity from a command response.

    Args:
        response: Raw response text.
        command: Command that was sent, e.g. ``create_filter``.

    Returns:
        Tuple of (status, id). The status is ``"unknown"`` when the
        ``{command}_response`` element is missing or carries no status.
    """
    expected = f"{command}_response"
    for event in iter_tags(response):
        if event.name == expected:
            status = event.attributes.get("status") or STATUS_UNKNOWN
            return status, event.attributes.get("id") or None
    return STATUS_UNKNOWN, None
