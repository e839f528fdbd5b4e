#!/usr/bin/env python
"""kitchen-linode CLI."""
from dataclasses import asdict
from functools import wraps
from json import dumps

from click import ClickException, Path, argument, group, option

from kitchen_linode.client import LinodeClient
from kitchen_linode.config import DriverConfig, default_api_token, load_config
from kitchen_linode.driver import LinodeDriver
from kitchen_linode.errors import KitchenLinodeError
from kitchen_linode.log import register_secret, setup_cli_logging
from kitchen_linode.resolver import matches_name
from kitchen_linode.state import RunState, StateFile


def pj(data):
    """Print JSON data."""
    print(dumps(data, indent=2))


def translate_errors(func):
    """Report driver errors as click errors (exit status 1, no traceback)."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KitchenLinodeError as e:
            raise ClickException(f"{type(e).__name__}: {e}")
    return wrapper


def driver_options(func):
    """Options shared by ``create`` and ``destroy``."""
    decorators = [
        argument("instance_name"),
        option('-c', '--config', 'config_path', type=Path(exists=True, dir_okay=False), help="YAML file with driver options"),
        option('-s', '--state', 'state_path', type=Path(dir_okay=False), help="State file (default: .kitchen/<instance>.yml)"),
        option('--api-token', envvar="LINODE_TOKEN", show_envvar=True, help="Linode API token"),
        option('-l', '--label', help="Server name; becomes the hostname"),
        option('-r', '--region', help="Region id, name or substring"),
        option('-t', '--type', 'type_', help="Type id, name, substring, or RAM size in MB"),
        option('-i', '--image', help="Image id, name or substring"),
        option('-k', '--kernel', help="Kernel id, name or substring"),
        option('-u', '--username', help="Login user"),
        option('--private-key-path', help="SSH private key (default: ~/.ssh/id_rsa)"),
        option('--public-key-path', help="SSH public key (default: <private key>.pub)"),
        option('--ssh-timeout', type=float, help="SSH connect timeout in seconds"),
        option('--ready-timeout', type=float, help="Seconds to wait for the Linode to boot"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_driver(instance_name, config_path, api_token, type_, **overrides):
    mapping = load_config(config_path) if config_path else {}
    config = DriverConfig.from_mapping(
        mapping,
        instance_name=instance_name,
        api_token=api_token,
        type=type_,
        **overrides,
    )
    register_secret(config.api_token)
    return LinodeDriver(config)


def state_file(instance_name, state_path) -> StateFile:
    return StateFile(state_path) if state_path else StateFile.for_instance(instance_name)


@group()
@option('-v', '--verbose', is_flag=True, help="Debug logging")
def cli(verbose):
    """Provision Linodes for kitchen integration tests."""
    setup_cli_logging(verbose)


@cli.command("create")
@driver_options
@translate_errors
def create(instance_name, state_path, **kwargs):
    """Create and bootstrap the Linode for INSTANCE_NAME."""
    driver = build_driver(instance_name, **kwargs)
    store = state_file(instance_name, state_path)
    state = store.load()
    try:
        driver.create(state)
    finally:
        store.save(state)


@cli.command("destroy")
@driver_options
@translate_errors
def destroy(instance_name, state_path, **kwargs):
    """Destroy the Linode recorded for INSTANCE_NAME."""
    driver = build_driver(instance_name, **kwargs)
    store = state_file(instance_name, state_path)
    state = store.load()
    driver.destroy(state)
    store.save(RunState())


def api_client() -> LinodeClient:
    token = default_api_token()
    if not token:
        raise ClickException("LINODE_TOKEN environment variable not set")
    register_secret(token)
    return LinodeClient(api_token=token)


def listing_command(name, method, doc):
    @cli.command(name, help=doc)
    @option('-f', '--filter', 'pattern', help="Only show entries matching this substring")
    @translate_errors
    def command(pattern):
        resources = getattr(api_client(), method)()
        if pattern:
            resources = [r for r in resources if matches_name(r, pattern)]
        pj([asdict(r) for r in resources])
    return command


listing_command("regions", "list_regions", "List regions.")
listing_command("types", "list_types", "List instance types.")
listing_command("images", "list_images", "List images.")
listing_command("kernels", "list_kernels", "List kernels.")


if __name__ == "__main__":
    cli()
