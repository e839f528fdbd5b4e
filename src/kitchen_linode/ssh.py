"""Password-authenticated SSH command channel built on paramiko."""

import logging
import socket
import time

import paramiko

from kitchen_linode.defaults import EXIT_POLL_INTERVAL, SSH_TIMEOUT
from kitchen_linode.errors import RemoteCommandError

logger = logging.getLogger(__name__)

# Failures worth reconnecting for while a fresh instance finishes booting
CHANNEL_ERRORS = (
    paramiko.SSHException,
    socket.error,
    EOFError,
    RemoteCommandError,
)


class SSHChannel:
    """An open SSH session that runs shell commands in order."""

    def __init__(self, client: paramiko.SSHClient, host: str, username: str, timeout: float = SSH_TIMEOUT):
        self.client = client
        self.host = host
        self.username = username
        self.timeout = timeout

    @classmethod
    def open(
        cls,
        host: str,
        username: str,
        password: str = None,
        timeout: float = SSH_TIMEOUT,
        port: int = 22,
    ) -> "SSHChannel":
        """Connect to ``host`` with a password, ignoring local keys and agents."""
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                host,
                port=port,
                username=username,
                password=password,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except Exception:
            client.close()
            raise
        return cls(client, host, username, timeout)

    def run(self, commands: list[str]):
        """Run ``commands`` one after another, stopping at the first failure.

        Raises
        ------
        RemoteCommandError
            If a command exits with a non-zero status.
        socket.timeout
            If a command has not exited within ``self.timeout`` seconds.
        """
        for command in commands:
            logger.debug(f"[{self.username}@{self.host}] {command}")
            _, stdout, stderr = self.client.exec_command(command, timeout=self.timeout)
            exit_status = self._wait_for_exit(command, stdout.channel)
            if exit_status != 0:
                raise RemoteCommandError(command, exit_status, stderr.read().decode(errors="replace"))

    def _wait_for_exit(self, command: str, channel) -> int:
        deadline = time.monotonic() + self.timeout
        while not channel.exit_status_ready():
            if time.monotonic() >= deadline:
                channel.close()
                raise socket.timeout(f"Remote command still running after {self.timeout}s: {command}")
            time.sleep(EXIT_POLL_INTERVAL)
        return channel.recv_exit_status()

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
