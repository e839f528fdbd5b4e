import json
from unittest.mock import patch

import pytest
import requests
import responses

from kitchen_linode.client import LinodeClient
from kitchen_linode.defaults import LINODE_API_BASE
from kitchen_linode.errors import (
    ConfigurationError,
    LinodeAPIError,
    RateLimitError,
    ReadinessTimeout,
)
from kitchen_linode.resources import Image, InstanceType, Kernel, Region


@pytest.fixture(scope="function")
def client():
    return LinodeClient(api_token="test-token")


def _instance(status, instance_id=123):
    return {"id": instance_id, "label": "kitchen-x", "status": status, "ipv4": ["192.168.1.5", "45.33.1.2"]}


@responses.activate
def test_auth_header(client):
    """API requests carry the bearer token"""
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/1", json=_instance("running", 1))

    client.get_instance(1)

    assert len(responses.calls) == 1
    assert responses.calls[0].request.headers["Authorization"] == "Bearer test-token"


@responses.activate
def test_list_types_follows_pages(client):
    """Listings collect every page in API order"""
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/linode/types",
        json={"data": [{"id": "g6-nanode-1", "label": "Nanode 1GB", "memory": 1024}], "page": 1, "pages": 2},
    )
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/linode/types",
        json={"data": [{"id": "g6-standard-1", "label": "Linode 2GB", "memory": 2048}], "page": 2, "pages": 2},
    )

    types = client.list_types()

    assert [t.id for t in types] == ["g6-nanode-1", "g6-standard-1"]
    assert types[1].memory == 2048
    assert "page=2" in responses.calls[1].request.url


@responses.activate
def test_list_regions_images_kernels(client):
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/regions",
        json={"data": [{"id": "us-east", "label": "Newark, NJ", "country": "us"}], "pages": 1},
    )
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/images",
        json={"data": [{"id": "linode/debian12", "label": "Debian 12"}], "pages": 1},
    )
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/linode/kernels",
        json={"data": [{"id": "linode/grub2", "label": "GRUB 2"}], "pages": 1},
    )

    assert client.list_regions() == [Region(id="us-east", label="Newark, NJ", country="us")]
    assert client.list_images() == [Image(id="linode/debian12", label="Debian 12")]
    assert client.list_kernels() == [Kernel(id="linode/grub2", label="GRUB 2")]


@responses.activate
def test_create_instance(client):
    """Create is a single request for a powered-off Linode"""
    responses.add(responses.POST, f"{LINODE_API_BASE}/linode/instances", json=_instance("provisioning"))

    instance = client.create_instance(
        region=Region(id="us-east"),
        instance_type=InstanceType(id="g6-standard-1"),
        label="kitchen-x",
        image=Image(id="linode/debian12"),
        root_pass="s3cretPassw0rd1",
    )

    assert instance.id == 123
    assert instance.public_ip == "45.33.1.2"
    assert len(responses.calls) == 1
    create_body = json.loads(responses.calls[0].request.body)
    assert create_body == {
        "region": "us-east",
        "type": "g6-standard-1",
        "label": "kitchen-x",
        "image": "linode/debian12",
        "root_pass": "s3cretPassw0rd1",
        "booted": False,
    }


@responses.activate
def test_configure_and_boot(client):
    """Pin the kernel on the first config profile, then boot"""
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/linode/instances/123/configs",
        json={"data": [{"id": 77, "kernel": "linode/grub2"}, {"id": 78}], "pages": 1},
    )
    responses.add(responses.PUT, f"{LINODE_API_BASE}/linode/instances/123/configs/77", json={"id": 77})
    responses.add(responses.POST, f"{LINODE_API_BASE}/linode/instances/123/boot", json={})

    client.configure_and_boot(123, Kernel(id="linode/latest-64bit"))

    assert [c.request.method for c in responses.calls] == ["GET", "PUT", "POST"]
    assert json.loads(responses.calls[1].request.body) == {"kernel": "linode/latest-64bit"}
    assert responses.calls[2].request.url.endswith("/linode/instances/123/boot")


@responses.activate
def test_configure_and_boot_without_config_profile(client):
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123/configs", json={"data": [], "pages": 1})
    responses.add(responses.POST, f"{LINODE_API_BASE}/linode/instances/123/boot", json={})

    client.configure_and_boot(123, Kernel(id="linode/latest-64bit"))

    assert [c.request.method for c in responses.calls] == ["GET", "POST"]


@responses.activate
def test_destroy_instance(client):
    responses.add(responses.DELETE, f"{LINODE_API_BASE}/linode/instances/123", body="")
    client.destroy_instance(123)
    assert responses.calls[0].request.method == "DELETE"


@responses.activate
def test_field_error_is_api_error(client):
    """A 400 naming a field is a provider error carrying that field"""
    responses.add(
        responses.POST,
        f"{LINODE_API_BASE}/linode/instances",
        json={"errors": [{"reason": "Region is not valid", "field": "region"}]},
        status=400,
    )
    with pytest.raises(LinodeAPIError, match="region: Region is not valid") as exc_info:
        client._api_request("POST", "/linode/instances", {"region": "mars"})
    assert exc_info.value.status_code == 400
    assert exc_info.value.field == "region"
    assert not isinstance(exc_info.value, ConfigurationError)


@responses.activate
def test_rate_limit(client):
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/regions",
        json={"errors": [{"reason": "Too many requests"}]},
        status=429,
        headers={"Retry-After": "7"},
    )
    with pytest.raises(RateLimitError) as exc_info:
        client.list_regions()
    assert exc_info.value.retry_after == 7


@responses.activate
def test_other_api_error(client):
    responses.add(
        responses.GET,
        f"{LINODE_API_BASE}/linode/instances/9",
        json={"errors": [{"reason": "Not found"}]},
        status=404,
    )
    with pytest.raises(LinodeAPIError, match="Not found") as exc_info:
        client.get_instance(9)
    assert exc_info.value.status_code == 404


@responses.activate
def test_unparseable_error_raises_http_error(client):
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/9", body="gateway down", status=502)
    with pytest.raises(requests.HTTPError):
        client.get_instance(9)


@responses.activate
def test_wait_until_ready(client):
    """Polls until the instance reports running"""
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123", json=_instance("provisioning"))
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123", json=_instance("booting"))
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123", json=_instance("running"))

    with patch("kitchen_linode.client.time.sleep") as sleep:
        instance = client.wait_until_ready(123, timeout=30, interval=5)

    assert instance.ready
    assert len(responses.calls) == 3
    assert sleep.call_count == 2


@responses.activate
def test_wait_until_ready_timeout(client):
    """An instance that never runs raises ReadinessTimeout"""
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123", json=_instance("booting"))

    with pytest.raises(ReadinessTimeout, match="last status: booting") as exc_info:
        client.wait_until_ready(123, timeout=0)
    assert exc_info.value.instance_id == 123


@responses.activate
def test_wait_until_ready_deleted(client):
    responses.add(responses.GET, f"{LINODE_API_BASE}/linode/instances/123", json=_instance("deleting"))
    with pytest.raises(LinodeAPIError, match="being deleted"):
        client.wait_until_ready(123, timeout=30)
