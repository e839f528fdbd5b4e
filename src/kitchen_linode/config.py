"""Driver configuration record and YAML loading."""

from dataclasses import dataclass, field, fields
from os import environ

import yaml

from kitchen_linode.defaults import (
    API_TOKEN_ENV_VARS,
    AUTHORIZED_KEYS_MODES,
    DEFAULT_AUTHORIZED_KEYS_MODE,
    DEFAULT_IMAGE,
    DEFAULT_KERNEL,
    DEFAULT_REGION,
    DEFAULT_SHELL,
    DEFAULT_TYPE,
    DEFAULT_USERNAME,
    READY_INTERVAL,
    READY_TIMEOUT,
    SSH_TIMEOUT,
)
from kitchen_linode.errors import ConfigurationError

# Option names accepted from older kitchen configs
ALIASES = {
    "server_name": "label",
    "data_center": "region",
    "flavor": "type",
    "api_key": "api_token",
}

# Keys of a kitchen driver section that are not driver options
IGNORED_KEYS = {"name"}

SELECTOR_FIELDS = ("image", "region", "type", "kernel")
REQUIRED_FIELDS = ("api_token", "private_key_path", "public_key_path")


def default_api_token() -> str | None:
    for name in API_TOKEN_ENV_VARS:
        if environ.get(name):
            return environ[name]
    return None


def coerce_selector(value):
    """Turn all-digit strings into ints so they select by id (or RAM for types)."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


@dataclass
class DriverConfig:
    """Options for one provisioning run.

    Read-only except for three write-back points during ``create``: the
    label/hostname pair, the generated password, and the key paths.
    """

    instance_name: str = "default"
    username: str = DEFAULT_USERNAME
    password: str | None = None
    label: str | None = None
    hostname: str | None = None
    image: str | int = DEFAULT_IMAGE
    region: str | int = DEFAULT_REGION
    type: str | int = DEFAULT_TYPE
    kernel: str | int = DEFAULT_KERNEL
    private_key_path: str | None = None
    public_key_path: str | None = None
    api_token: str | None = field(default_factory=default_api_token, repr=False)
    sudo: bool = True
    ssh_timeout: float = SSH_TIMEOUT
    shell: str = DEFAULT_SHELL
    ready_timeout: float = READY_TIMEOUT
    ready_interval: float = READY_INTERVAL
    kitchen_root: str | None = None
    authorized_keys_mode: str = DEFAULT_AUTHORIZED_KEYS_MODE

    def __post_init__(self):
        for name in SELECTOR_FIELDS:
            setattr(self, name, coerce_selector(getattr(self, name)))
        if self.authorized_keys_mode not in AUTHORIZED_KEYS_MODES:
            raise ConfigurationError(
                f"authorized_keys_mode must be one of {', '.join(AUTHORIZED_KEYS_MODES)}, "
                f"got {self.authorized_keys_mode!r}"
            )

    @classmethod
    def from_mapping(cls, mapping: dict, **overrides) -> "DriverConfig":
        """Build a config from a driver section, applying aliases and overrides.

        Overrides whose value is ``None`` are ignored so unset CLI options do
        not mask file values.
        """
        known = {f.name for f in fields(cls)}
        options = {}
        for key, value in (mapping or {}).items():
            if key in IGNORED_KEYS:
                continue
            name = ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown driver option: {key}")
            options[name] = value
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)

    def is_bourne_shell(self) -> bool:
        return self.shell == "bourne"

    def validate(self):
        """Raise ConfigurationError unless every required option is set."""
        missing = [name for name in REQUIRED_FIELDS if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


def load_config(path) -> dict:
    """Read the driver section of a YAML file.

    Accepts either a bare mapping of driver options or a kitchen-style file
    with a top-level ``driver`` key.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")
    section = data.get("driver", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"{path}: driver section must be a mapping")
    return section
