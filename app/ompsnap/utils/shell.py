"""Subprocess helpers for driving the omp command line client.

The client reads one XML request on stdin and prints the manager's XML
response on stdout.
"""

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one client invocation.

    Attributes:
        stdout: Response text printed by the client.
        stderr: Diagnostics printed by the client.
        returncode: Exit code of the client.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if the client exited cleanly."""
        return self.returncode == 0

    @property
    def detail(self) -> str:
        """Best available explanation of a failure."""
        return self.stderr.strip() or self.stdout.strip()


def run_command(
    args: list[str],
    *,
    input: str | None = None,
    timeout: float | None = 300.0,
) -> CommandResult:
    """Run a command to completion, feeding it text on stdin.

    Args:
        args: Command and arguments to execute.
        input: Text passed to the command on stdin, e.g. an OMP request.
        timeout: Seconds to wait before the command is killed.

    Returns:
        CommandResult with captured stdout, stderr and exit code.

    Raises:
        subprocess.TimeoutExpired: If the command exceeds the timeout.
        FileNotFoundError: If the executable is not found.
    """
    completed = subprocess.run(
        args,
        input=input,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
    )
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )
