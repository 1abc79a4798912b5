"""EC2 instance query and seed address extraction.

Security groups are not part of the DescribeInstances filters: VPCs differ in
whether they can be queried by group name or id, and the any/all matching
below needs both. They are checked locally instead.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from discovery.errors import AddressResolutionError, InventoryQueryError
from discovery.models.address import TransportAddress
from discovery.models.criteria import FilterCriteria, GroupMatchMode, HostType, HostTypeKind
from discovery.models.instance import InstanceRecord

logger = logging.getLogger(__name__)

INSTANCE_STATES = ["running", "pending"]

Resolver = Callable[[str], list[TransportAddress]]


def build_query(criteria: FilterCriteria) -> dict[str, Any]:
    """DescribeInstances arguments for ``criteria``.

    Values within one filter are OR'd by the API, separate filters are AND'd.
    """
    filters: list[dict[str, Any]] = [{"Name": "instance-state-name", "Values": list(INSTANCE_STATES)}]
    for key, values in criteria.tags.items():
        filters.append({"Name": f"tag:{key}", "Values": list(values)})
    if criteria.availability_zones:
        filters.append({"Name": "availability-zone", "Values": list(criteria.availability_zones)})
    return {"Filters": filters}


def fetch_instances(ec2_client: Any, query: dict[str, Any]) -> list[InstanceRecord]:
    """Run the query and flatten reservations into instance records, in API order.

    Raises InventoryQueryError once botocore has given up retrying.
    """
    records: list[InstanceRecord] = []
    try:
        paginator = ec2_client.get_paginator("describe_instances")
        for page in paginator.paginate(**query):
            for reservation in page.get("Reservations", []):
                for instance in reservation.get("Instances", []):
                    records.append(InstanceRecord.from_api(instance))
    except (ClientError, BotoCoreError) as e:
        logger.warning("Exception while retrieving instance list from AWS API: %s", e)
        raise InventoryQueryError(f"DescribeInstances failed: {e}") from e
    return records


def matches_groups(record: InstanceRecord, groups: frozenset[str], match_mode: GroupMatchMode) -> bool:
    """Whether ``record`` passes the security group filter.

    ANY passes when a configured group matches either a group name or a group
    id. ALL needs every configured group among the names, or every one among
    the ids; a mix of names and ids does not pass.
    """
    if not groups:
        return True
    names = {sg.name for sg in record.security_groups if sg.name is not None}
    ids = {sg.id for sg in record.security_groups if sg.id is not None}
    if match_mode is GroupMatchMode.ANY:
        return not (names.isdisjoint(groups) and ids.isdisjoint(groups))
    return groups <= names or groups <= ids


def select_address(record: InstanceRecord, host_type: HostType) -> str | None:
    if host_type.kind is HostTypeKind.PRIVATE_DNS:
        address = record.private_dns_name
    elif host_type.kind is HostTypeKind.PRIVATE_IP:
        address = record.private_ip_address
    elif host_type.kind is HostTypeKind.PUBLIC_DNS:
        address = record.public_dns_name
    elif host_type.kind is HostTypeKind.PUBLIC_IP:
        address = record.public_ip_address
    else:
        logger.debug("reading hostname from [%s] instance tag", host_type.tag_name)
        address = record.tag_value(host_type.tag_name or "")
        if address is not None:
            logger.debug("using [%s] as the instance address", address)
    return address or None


def filter_and_extract(
    records: Iterable[InstanceRecord],
    criteria: FilterCriteria,
    resolver: Resolver,
) -> list[TransportAddress]:
    """Seed addresses for the records that pass ``criteria``, in record order.

    An unknown host type raises ConfigurationError before any record is
    looked at. A record whose address fails to resolve is logged and skipped.
    """
    host_type = HostType.parse(criteria.host_type)
    addresses: list[TransportAddress] = []

    for record in records:
        if not matches_groups(record, criteria.groups, criteria.match_mode):
            logger.debug(
                "filtering out instance %s based on groups %s, %s of %s",
                record.id,
                [sg.model_dump() for sg in record.security_groups],
                "not part" if criteria.match_mode is GroupMatchMode.ANY else "does not include all",
                sorted(criteria.groups),
            )
            continue

        address = select_address(record, host_type)
        if address is None:
            logger.debug("not adding %s, address is empty, host_type %s", record.id, host_type)
            continue

        try:
            resolved = resolver(address)
        except AddressResolutionError:
            logger.warning("failed to add %s, address %s", record.id, address, exc_info=True)
            continue
        for transport_address in resolved:
            logger.debug("adding %s, address %s, transport_address %s", record.id, address, transport_address)
            addresses.append(transport_address)

    return addresses
