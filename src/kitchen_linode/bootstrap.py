"""First-login bootstrap: hostname, authorized key, password lock.

The whole command batch is retried from a fresh connection on any channel
or command failure, with capped exponential backoff.
"""

import logging
import shlex
import time
from dataclasses import dataclass

from kitchen_linode.credentials import read_public_key
from kitchen_linode.defaults import BACKOFF_EXPONENT_OFFSET, MAX_INTERVAL, MAX_RETRIES
from kitchen_linode.ssh import CHANNEL_ERRORS, SSHChannel

logger = logging.getLogger(__name__)

AUTHORIZED_KEYS = "~/.ssh/authorized_keys"


@dataclass
class RetryPolicy:
    """Bounded exponential backoff.

    ``backoff(n)`` is the wait after the failure seen with ``n`` retries
    already spent: ``min(2 ** (n - exponent_offset), max_interval)``. With
    the default offset of 1 the first wait is half a second.
    """

    max_retries: int = MAX_RETRIES
    max_interval: float = MAX_INTERVAL
    exponent_offset: int = BACKOFF_EXPONENT_OFFSET

    def backoff(self, retries: int) -> float:
        return min(2 ** (retries - self.exponent_offset), self.max_interval)


def hosts_file(hostname: str) -> str:
    shortname = hostname.split(".")[0]
    return (
        f"127.0.0.1 {hostname} {shortname} localhost\n"
        f"::1 {hostname} {shortname} localhost"
    )


def bootstrap_commands(
    hostname: str,
    username: str,
    public_key: str,
    authorized_keys_mode: str = "check",
    sudo: bool = False,
) -> list[str]:
    """Build the ordered bootstrap batch.

    In ``check`` mode the key is only appended when ``authorized_keys`` does
    not already hold that exact line, so retried batches leave one copy.
    With ``sudo`` the system-wide commands run through ``sudo -n sh -c``; the
    key still goes to the login user's own ``~/.ssh``.
    """
    key = shlex.quote(public_key)
    append_key = f"echo {key} >> {AUTHORIZED_KEYS}"
    if authorized_keys_mode == "check":
        append_key = f"grep -qxF {key} {AUTHORIZED_KEYS} 2>/dev/null || {append_key}"

    def privileged(command):
        return f"sudo -n sh -c {shlex.quote(command)}" if sudo else command

    return [
        privileged(f"echo {shlex.quote(hosts_file(hostname))} > /etc/hosts"),
        privileged(f"hostnamectl set-hostname {shlex.quote(hostname)}"),
        "mkdir -p ~/.ssh",
        append_key,
        privileged(f"passwd -l {shlex.quote(username)}"),
    ]


def run_with_retry(
    host: str,
    username: str,
    password: str,
    commands: list[str],
    timeout: float,
    policy: RetryPolicy = None,
) -> int:
    """Open a channel to ``host`` and run ``commands``, retrying the whole sequence.

    Parameters
    ----------
    host : str
        Address to connect to.
    username, password : str
        Login credentials.
    commands : list[str]
        Batch to run on each attempt.
    timeout : float
        SSH connect and command timeout in seconds.
    policy : RetryPolicy, optional
        Retry limits; defaults to 10 retries capped at 60s.

    Returns
    -------
    int
        Number of attempts made, including the successful one.

    Raises
    ------
    Exception
        The last channel or command error once retries are exhausted.
    """
    policy = policy or RetryPolicy()
    retries = 0
    while True:
        channel = None
        try:
            channel = SSHChannel.open(host, username, password=password, timeout=timeout)
            channel.run(commands)
            return retries + 1
        except CHANNEL_ERRORS as e:
            if retries >= policy.max_retries:
                raise
            delay = policy.backoff(retries)
            logger.info(f"Retrying connection in {delay}s... ({type(e).__name__}: {e})")
            time.sleep(delay)
            retries += 1
        finally:
            if channel is not None:
                channel.close()


def setup_ssh(host: str, config, policy: RetryPolicy = None) -> int:
    """Install the configured public key on ``host`` and lock the password login."""
    logger.info(f"Setting up SSH access for key <{config.public_key_path}>")
    logger.info(f"Connecting <{config.username}@{host}>...")
    public_key = read_public_key(config.public_key_path)
    commands = bootstrap_commands(
        config.hostname,
        config.username,
        public_key,
        authorized_keys_mode=config.authorized_keys_mode,
        sudo=config.sudo and config.username != "root",
    )
    attempts = run_with_retry(
        host,
        config.username,
        config.password,
        commands,
        timeout=config.ssh_timeout,
        policy=policy,
    )
    logger.info("Done setting up SSH access.")
    return attempts
