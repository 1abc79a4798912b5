"""Pydantic models for EC2 instance records returned by DescribeInstances."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class SecurityGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    id: str | None = None


class InstanceTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class InstanceRecord(BaseModel):
    """One instance from a DescribeInstances reservation.

    Tags are kept as an ordered list rather than a mapping because the API can
    return the same key more than once and host-type lookup must see them all.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    private_dns_name: str | None = None
    private_ip_address: str | None = None
    public_dns_name: str | None = None
    public_ip_address: str | None = None
    tags: list[InstanceTag] = []
    security_groups: list[SecurityGroup] = []
    state: str | None = None

    @classmethod
    def from_api(cls, instance: dict[str, Any]) -> "InstanceRecord":
        return cls(
            id=instance.get("InstanceId", ""),
            private_dns_name=instance.get("PrivateDnsName"),
            private_ip_address=instance.get("PrivateIpAddress"),
            public_dns_name=instance.get("PublicDnsName"),
            public_ip_address=instance.get("PublicIpAddress"),
            tags=[InstanceTag(key=t["Key"], value=t.get("Value", "")) for t in instance.get("Tags", [])],
            security_groups=[
                SecurityGroup(name=sg.get("GroupName"), id=sg.get("GroupId"))
                for sg in instance.get("SecurityGroups", [])
            ],
            state=instance.get("State", {}).get("Name"),
        )

    def tag_value(self, key: str) -> str | None:
        """Value of tag ``key``; the last one wins when the key repeats."""
        value = None
        for tag in self.tags:
            if tag.key == key:
                value = tag.value
        return value
