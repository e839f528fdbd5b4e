"""Linode resource records returned by the API client."""

import ipaddress
from dataclasses import dataclass, field


@dataclass
class Region:
    """A Linode data center."""

    id: str
    label: str = ""
    country: str = ""

    @property
    def name(self) -> str:
        return self.label or self.id

    @property
    def match_fields(self) -> tuple[str, ...]:
        return (self.id, self.label, self.country)

    @classmethod
    def from_api(cls, data: dict) -> "Region":
        return cls(id=data["id"], label=data.get("label", ""), country=data.get("country", ""))


@dataclass
class InstanceType:
    """A Linode plan. ``memory`` is the RAM size in MB."""

    id: str
    label: str = ""
    memory: int = 0

    @property
    def name(self) -> str:
        return self.id

    @property
    def match_fields(self) -> tuple[str, ...]:
        return (self.id, self.label)

    @classmethod
    def from_api(cls, data: dict) -> "InstanceType":
        return cls(id=data["id"], label=data.get("label", ""), memory=data.get("memory", 0))


@dataclass
class Image:
    """A deployable disk image."""

    id: str
    label: str = ""

    @property
    def name(self) -> str:
        return self.label or self.id

    @property
    def match_fields(self) -> tuple[str, ...]:
        return (self.id, self.label)

    @classmethod
    def from_api(cls, data: dict) -> "Image":
        return cls(id=data["id"], label=data.get("label", ""))


@dataclass
class Kernel:
    """A boot kernel for a config profile."""

    id: str
    label: str = ""

    @property
    def name(self) -> str:
        return self.label or self.id

    @property
    def match_fields(self) -> tuple[str, ...]:
        return (self.id, self.label)

    @classmethod
    def from_api(cls, data: dict) -> "Kernel":
        return cls(id=data["id"], label=data.get("label", ""))


@dataclass
class Instance:
    """A provisioned Linode. Only the fields the driver needs are kept."""

    id: int
    label: str = ""
    status: str = ""
    ipv4: list[str] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.status == "running"

    @property
    def public_ip(self) -> str:
        """First public IPv4 address, falling back to the first address of any kind."""
        for address in self.ipv4:
            if not ipaddress.ip_address(address).is_private:
                return address
        return self.ipv4[0] if self.ipv4 else ""

    @classmethod
    def from_api(cls, data: dict) -> "Instance":
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            status=data.get("status", ""),
            ipv4=list(data.get("ipv4") or []),
        )
