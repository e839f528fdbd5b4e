"""Instance label and hostname derivation."""

import os
import random
import time
from os import environ

from kitchen_linode.defaults import (
    JOB_NAME_FALLBACK,
    LABEL_MAX_LENGTH,
    LABEL_PREFIX,
    LABEL_TRUNCATE_LENGTH,
)


def job_name(kitchen_root: str = None, env=None) -> str:
    """Pick the CI job name used in generated labels.

    Jenkins' ``JOB_NAME`` wins over ``GITHUB_JOB``; outside CI the base name
    of the kitchen root is used, then a literal fallback.
    """
    env = environ if env is None else env
    if env.get("JOB_NAME"):
        return env["JOB_NAME"]
    if env.get("GITHUB_JOB"):
        return env["GITHUB_JOB"]
    if kitchen_root:
        return os.path.basename(os.path.normpath(kitchen_root))
    return JOB_NAME_FALLBACK


def fit_label(label: str) -> str:
    """Cut a label to the Linode length limit, keeping it probably unique."""
    if len(label) >= LABEL_MAX_LENGTH:
        return f"{label[:LABEL_TRUNCATE_LENGTH]}{random.randint(10, 99)}"
    return label


def build_label(config, timestamp: int = None, env=None) -> tuple[str, str]:
    """Return ``(label, hostname)`` for ``config`` without modifying it."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    if config.label:
        hostname = str(config.label)
        label = f"{LABEL_PREFIX}-{config.label}-{config.instance_name}-{timestamp}"
    else:
        hostname = config.instance_name
        jobname = job_name(config.kitchen_root, env)
        label = f"{LABEL_PREFIX}-{jobname}-{config.instance_name}-{timestamp}"
        label = label.replace(" ", "_").replace("/", "_")
    return fit_label(label), hostname


def configure_label(config, timestamp: int = None, env=None) -> str:
    """Write the derived label and hostname back into ``config``.

    Runs once per config: when ``config.hostname`` is already set the label
    was derived earlier and is returned unchanged.
    """
    if config.hostname is not None:
        return config.label
    config.label, config.hostname = build_label(config, timestamp, env)
    return config.label
