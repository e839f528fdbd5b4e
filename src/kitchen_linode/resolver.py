"""Resolve loosely specified selectors into concrete Linode resources.

A selector is either a number (an id, or for instance types at or above
1024 a RAM size in MB) or a string matched as a plain substring against the
resource's id, label and similar fields. The first match in API order wins.
"""

import logging

from kitchen_linode.defaults import TYPE_ID_CEILING
from kitchen_linode.errors import ConfigurationError
from kitchen_linode.resources import Image, InstanceType, Kernel, Region

logger = logging.getLogger(__name__)


def _is_numeric(selector) -> bool:
    return isinstance(selector, int) and not isinstance(selector, bool)


def matches_name(resource, selector: str) -> bool:
    return any(selector in value for value in resource.match_fields if value)


def matches_id(resource, selector) -> bool:
    return str(resource.id) == str(selector)


def find_resource(candidates, selector, field_name: str, by_number=matches_id):
    """Return the first candidate matching ``selector``.

    Parameters
    ----------
    candidates : iterable
        Resources in provider order.
    selector : int or str
        Numeric selectors are compared with ``by_number``; strings are
        substring-matched against each resource's ``match_fields``.
    field_name : str
        Option name used in the error and log messages.
    by_number : callable
        Predicate ``(resource, number) -> bool`` for numeric selectors.

    Raises
    ------
    ConfigurationError
        If nothing matches.
    """
    if _is_numeric(selector):
        resource = next((r for r in candidates if by_number(r, selector)), None)
    elif isinstance(selector, str) and selector:
        resource = next((r for r in candidates if matches_name(r, selector)), None)
    else:
        resource = None
    if resource is None:
        raise ConfigurationError(f"No match for {field_name}: {selector}")
    logger.info(f"Got {field_name}: {resource.name}...")
    return resource


def _matches_type_number(instance_type: InstanceType, selector: int) -> bool:
    if selector < TYPE_ID_CEILING:
        return matches_id(instance_type, selector)
    return instance_type.memory == selector


def resolve_region(client, selector) -> Region:
    return find_resource(client.list_regions(), selector, "region")


def resolve_type(client, selector) -> InstanceType:
    return find_resource(client.list_types(), selector, "type", by_number=_matches_type_number)


def resolve_image(client, selector) -> Image:
    return find_resource(client.list_images(), selector, "image")


def resolve_kernel(client, selector) -> Kernel:
    return find_resource(client.list_kernels(), selector, "kernel")
