"""Root password generation and SSH key path resolution."""

import os
import secrets
import string

from kitchen_linode.defaults import DEFAULT_PRIVATE_KEY, PASSWORD_LENGTH
from kitchen_linode.log import register_secret

PASSWORD_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    # Initial root password only; the account is locked once the key is installed.
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def ensure_password(config) -> str:
    if not config.password:
        config.password = generate_password()
    register_secret(config.password)
    return config.password


def expand_path(path: str) -> str:
    return os.path.abspath(os.path.expanduser(path))


def default_private_key() -> str | None:
    path = os.path.expanduser(DEFAULT_PRIVATE_KEY)
    return path if os.path.exists(path) else None


def resolve_key_paths(config):
    """Fill in default key paths and make both absolute.

    The private key defaults to ``~/.ssh/id_rsa`` when that file exists;
    the public key defaults to the private key path plus ``.pub``.
    """
    if not config.private_key_path:
        config.private_key_path = default_private_key()
    if config.private_key_path:
        config.private_key_path = expand_path(config.private_key_path)
        if not config.public_key_path:
            config.public_key_path = config.private_key_path + ".pub"
    if config.public_key_path:
        config.public_key_path = expand_path(config.public_key_path)


def read_public_key(path: str) -> str:
    with open(path) as f:
        return f.read().strip()
