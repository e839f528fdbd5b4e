"""Linode API v4 client covering the calls the driver makes."""

import logging
import time
from dataclasses import dataclass, field

import requests

from kitchen_linode.defaults import LINODE_API_BASE, READY_INTERVAL, READY_TIMEOUT
from kitchen_linode.errors import LinodeAPIError, ReadinessTimeout, classify_api_error
from kitchen_linode.resources import Image, Instance, InstanceType, Kernel, Region

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
PAGE_SIZE = 500


@dataclass
class LinodeClient:
    """Minimal Linode control-plane client.

    Parameters
    ----------
    api_token : str
        Linode personal access token.
    api_base : str
        API root URL.
    session : requests.Session
        HTTP session, shared by all calls made through this client.
    """

    api_token: str
    api_base: str = LINODE_API_BASE
    session: requests.Session = field(default_factory=requests.Session)

    def _api_request(
        self,
        method: str,
        endpoint: str,
        json_data: dict = None,
        params: dict = None,
    ) -> dict:
        """Make an authenticated request to the Linode API.

        Parameters
        ----------
        method : str
            HTTP method (GET, POST, etc.).
        endpoint : str
            API endpoint path.
        json_data : dict, optional
            JSON body for the request.
        params : dict, optional
            Query string parameters.

        Returns
        -------
        dict
            JSON response from the API (empty for bodiless responses).

        Raises
        ------
        RateLimitError
            If the request was rate limited.
        InvalidFieldError
            If the API rejected a configuration field (region, type, image, ...).
        LinodeAPIError
            For any other API error body.
        requests.HTTPError
            If the request failed without a parseable error body.
        """
        url = f"{self.api_base}{endpoint}"
        headers = {"Authorization": f"Bearer {self.api_token}"}

        resp = self.session.request(
            method, url, headers=headers, json=json_data, params=params, timeout=REQUEST_TIMEOUT
        )
        if not resp.ok:
            try:
                error_body = resp.json()
            except ValueError:
                logger.debug(f"Linode API error (raw): {resp.text}")
                resp.raise_for_status()
            logger.debug(f"Linode API error: {error_body}")
            retry_after = resp.headers.get("Retry-After", "")
            raise classify_api_error(
                error_body,
                status_code=resp.status_code,
                retry_after=int(retry_after) if retry_after.isdigit() else None,
            )
        if not resp.content:
            return {}
        return resp.json()

    def _paginate(self, endpoint: str) -> list[dict]:
        """Collect every item of a paginated collection, in API order."""
        items = []
        page = 1
        while True:
            result = self._api_request("GET", endpoint, params={"page": page, "page_size": PAGE_SIZE})
            items.extend(result.get("data", []))
            if page >= result.get("pages", 1):
                return items
            page += 1

    def list_regions(self) -> list[Region]:
        return [Region.from_api(r) for r in self._paginate("/regions")]

    def list_types(self) -> list[InstanceType]:
        return [InstanceType.from_api(t) for t in self._paginate("/linode/types")]

    def list_images(self) -> list[Image]:
        return [Image.from_api(i) for i in self._paginate("/images")]

    def list_kernels(self) -> list[Kernel]:
        return [Kernel.from_api(k) for k in self._paginate("/linode/kernels")]

    def create_instance(
        self,
        region: Region,
        instance_type: InstanceType,
        label: str,
        image: Image,
        root_pass: str,
    ) -> Instance:
        """Create a powered-off Linode.

        Nothing else is requested here so the caller can record the new id
        before any follow-up call; see :meth:`configure_and_boot`.

        Returns
        -------
        Instance
            The instance as reported right after creation.
        """
        payload = {
            "region": region.id,
            "type": instance_type.id,
            "label": label,
            "image": image.id,
            "root_pass": root_pass,
            "booted": False,
        }
        return Instance.from_api(self._api_request("POST", "/linode/instances", payload))

    def configure_and_boot(self, instance_id, kernel: Kernel):
        """Pin ``kernel`` on the instance's default config profile, then boot it."""
        configs = self._api_request("GET", f"/linode/instances/{instance_id}/configs").get("data", [])
        if configs:
            config_id = configs[0]["id"]
            self._api_request(
                "PUT",
                f"/linode/instances/{instance_id}/configs/{config_id}",
                {"kernel": kernel.id},
            )
        else:
            logger.warning(f"Linode <{instance_id}> has no config profile; kernel {kernel.id} not applied")

        self._api_request("POST", f"/linode/instances/{instance_id}/boot")

    def get_instance(self, instance_id) -> Instance:
        return Instance.from_api(self._api_request("GET", f"/linode/instances/{instance_id}"))

    def destroy_instance(self, instance_id):
        self._api_request("DELETE", f"/linode/instances/{instance_id}")

    def wait_until_ready(
        self,
        instance_id,
        timeout: float = READY_TIMEOUT,
        interval: float = READY_INTERVAL,
    ) -> Instance:
        """Poll an instance until it is running.

        Parameters
        ----------
        instance_id : int
            Linode id to poll.
        timeout : float
            Maximum seconds to wait. The instance is polled at least once.
        interval : float
            Seconds between polls.

        Returns
        -------
        Instance
            The running instance.

        Raises
        ------
        ReadinessTimeout
            If the instance is not running within ``timeout`` seconds.
        LinodeAPIError
            If the instance is deleted while waiting.
        """
        start_time = time.time()
        last_status = None
        while True:
            instance = self.get_instance(instance_id)
            if instance.ready:
                return instance
            if instance.status == "deleting":
                raise LinodeAPIError(f"Linode <{instance_id}> is being deleted")

            elapsed = int(time.time() - start_time)
            if instance.status != last_status:
                logger.debug(f"[{elapsed}s] Linode <{instance_id}> status: {instance.status}")
                last_status = instance.status
            if time.time() - start_time >= timeout:
                raise ReadinessTimeout(instance_id, timeout, instance.status)
            time.sleep(interval)
