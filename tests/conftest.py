"""Shared test fixtures for EC2 seed discovery."""

import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

# Load .env file for test configuration
load_dotenv()

# Unset AWS_PROFILE so tests never pick up a developer profile
if "AWS_PROFILE" in os.environ:
    del os.environ["AWS_PROFILE"]

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


def _make_instance(
    instance_id: str = "i-0001",
    private_ip: str | None = "10.0.0.1",
    public_ip: str | None = None,
    private_dns: str | None = None,
    public_dns: str | None = None,
    tags: dict[str, str] | None = None,
    groups: list[tuple[str, str]] | None = None,
    state: str = "running",
) -> dict[str, Any]:
    """A DescribeInstances instance dict with only the fields discovery reads."""
    instance: dict[str, Any] = {
        "InstanceId": instance_id,
        "State": {"Name": state},
        "Tags": [{"Key": k, "Value": v} for k, v in (tags or {}).items()],
        "SecurityGroups": [{"GroupName": name, "GroupId": gid} for name, gid in (groups or [])],
    }
    if private_ip is not None:
        instance["PrivateIpAddress"] = private_ip
    if public_ip is not None:
        instance["PublicIpAddress"] = public_ip
    if private_dns is not None:
        instance["PrivateDnsName"] = private_dns
    if public_dns is not None:
        instance["PublicDnsName"] = public_dns
    return instance


@pytest.fixture
def make_instance():
    return _make_instance


@pytest.fixture
def make_ec2_client():
    """Build a MagicMock EC2 client whose describe_instances paginator yields ``pages``."""
    def _make(*pages: list[list[dict[str, Any]]]) -> MagicMock:
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Reservations": [{"Instances": reservation} for reservation in page]} for page in pages
        ]
        return client

    return _make


@pytest.fixture
def aws_credentials():
    """Fake credentials so boto3 never reaches for a real account."""
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("AWS_ACCESS_KEY_ID", "testing")
        mp.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        mp.setenv("AWS_SECURITY_TOKEN", "testing")
        mp.setenv("AWS_SESSION_TOKEN", "testing")
        mp.setenv("AWS_DEFAULT_REGION", "us-east-1")
        yield
