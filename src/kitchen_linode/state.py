"""Durable run state: which instance belongs to this harness run."""

import logging
import os
from pathlib import Path

import yaml

from kitchen_linode.defaults import STATE_DIR

logger = logging.getLogger(__name__)


class RunState(dict):
    """String-keyed store shared by ``create`` and ``destroy``.

    Lives across process invocations through :class:`StateFile`; keys
    written by the driver are ``instance_id``, ``hostname`` and ``ssh_key``.
    """

    def set(self, key: str, value):
        self[key] = value

    def delete(self, key: str):
        self.pop(key, None)


class StateFile:
    """YAML-backed persistence for a :class:`RunState`."""

    def __init__(self, path):
        self.path = Path(path)

    @classmethod
    def for_instance(cls, instance_name: str, root=None) -> "StateFile":
        root = Path(root) if root else Path.cwd()
        return cls(root / STATE_DIR / f"{instance_name}.yml")

    def load(self) -> RunState:
        if not self.path.exists():
            return RunState()
        with open(self.path) as f:
            data = yaml.safe_load(f) or {}
        return RunState(data)

    def save(self, state: RunState):
        """Write ``state``, or remove the file when the state is empty."""
        if not state:
            if self.path.exists():
                self.path.unlink()
                logger.debug(f"Removed empty state file {self.path}")
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            yaml.safe_dump(dict(state), f, default_flow_style=False)
        os.replace(tmp_path, self.path)
