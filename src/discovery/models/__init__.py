"""
Pydantic models for EC2 seed discovery.
"""

from discovery.models.address import TransportAddress
from discovery.models.criteria import FilterCriteria, GroupMatchMode, HostType, HostTypeKind
from discovery.models.instance import InstanceRecord, InstanceTag, SecurityGroup

__all__ = [
    "FilterCriteria",
    "GroupMatchMode",
    "HostType",
    "HostTypeKind",
    "InstanceRecord",
    "InstanceTag",
    "SecurityGroup",
    "TransportAddress",
]
