"""Create and destroy a Linode for one kitchen instance."""

import logging
from dataclasses import dataclass, field

import requests

from kitchen_linode.bootstrap import RetryPolicy, setup_ssh
from kitchen_linode.client import LinodeClient
from kitchen_linode.config import DriverConfig
from kitchen_linode.credentials import ensure_password, resolve_key_paths
from kitchen_linode.errors import ActionFailed, LinodeAPIError
from kitchen_linode.naming import configure_label
from kitchen_linode.resolver import resolve_image, resolve_kernel, resolve_region, resolve_type
from kitchen_linode.state import RunState

logger = logging.getLogger(__name__)


@dataclass
class LinodeDriver:
    """Provision, bootstrap and tear down a single Linode.

    Parameters
    ----------
    config : DriverConfig
        Options for this run. ``create`` writes back the derived label and
        hostname, a generated password, and absolute key paths.
    client : LinodeClient, optional
        Control-plane client; built from ``config.api_token`` on first use.
    retry_policy : RetryPolicy
        Limits for the SSH bootstrap retry loop.
    """

    config: DriverConfig
    client: LinodeClient = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def compute(self) -> LinodeClient:
        if self.client is None:
            self.client = LinodeClient(api_token=self.config.api_token)
        return self.client

    def _check_config(self):
        resolve_key_paths(self.config)
        self.config.validate()

    def create(self, state: RunState):
        """Create the instance unless ``state`` already records one.

        The instance id and address are written to ``state`` as soon as the
        create call returns, so a failed boot or readiness wait still leaves
        enough for ``destroy``.

        Raises
        ------
        ConfigurationError
            If required options are missing or a selector matches nothing.
        ActionFailed
            If the Linode API or the HTTP transport fails.
        ReadinessTimeout
            If the instance is not running within ``config.ready_timeout``.
        """
        configure_label(self.config)
        ensure_password(self.config)

        if state.get("instance_id"):
            logger.info(f"{self.config.label} ({state.get('instance_id')}) already exists.")
            return

        self._check_config()
        logger.info(f"Creating Linode - {self.config.label}")

        try:
            instance, kernel = self.create_server()

            state.set("instance_id", instance.id)
            state.set("hostname", instance.public_ip)
            logger.info(f"Linode <{instance.id}> created.")
            self.compute.configure_and_boot(instance.id, kernel)
            logger.info("Waiting for linode to boot...")
            instance = self.compute.wait_until_ready(
                instance.id,
                timeout=self.config.ready_timeout,
                interval=self.config.ready_interval,
            )
            if instance.public_ip:
                state.set("hostname", instance.public_ip)
            logger.info(f"Linode <{instance.id}, {state.get('hostname')}> ready.")
        except (requests.RequestException, LinodeAPIError) as e:
            raise ActionFailed(str(e)) from e

        if self.config.is_bourne_shell():
            self.setup_ssh(state)

    def create_server(self):
        """Resolve all selectors and submit the create request.

        Returns the new instance and the kernel to boot it with.
        """
        region = resolve_region(self.compute, self.config.region)
        instance_type = resolve_type(self.compute, self.config.type)
        image = resolve_image(self.compute, self.config.image)
        kernel = resolve_kernel(self.compute, self.config.kernel)

        instance = self.compute.create_instance(
            region=region,
            instance_type=instance_type,
            label=self.config.label,
            image=image,
            root_pass=self.config.password,
        )
        return instance, kernel

    def setup_ssh(self, state: RunState):
        state.set("ssh_key", self.config.private_key_path)
        setup_ssh(state.get("hostname"), self.config, policy=self.retry_policy)

    def destroy(self, state: RunState):
        """Delete the instance recorded in ``state``, if any.

        Errors from the API are not caught.
        """
        instance_id = state.get("instance_id")
        if instance_id is None:
            return

        self._check_config()
        instance = self.compute.get_instance(instance_id)
        self.compute.destroy_instance(instance.id)

        logger.info(f"Linode <{instance_id}> destroyed.")
        state.delete("instance_id")
        state.delete("pub_ip")
