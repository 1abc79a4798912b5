"""EC2 client lifecycle: lazily built, reference counted, hot-swapped on reload.

Borrowers take a handle with ``client()`` and must release it, normally via
``with``:

    with service.client() as reference:
        reference.client.describe_instances(...)

``refresh_and_clear_cache()`` installs a new lazily built client. The old one
stays usable for borrowers that already hold it and is closed when the last of
them releases it.
"""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import quote

import boto3
import botocore.session
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from discovery.config import Ec2ClientSettings
from discovery.errors import ConfigurationError, ErrorCode, NotConfiguredError

logger = logging.getLogger(__name__)

MAX_RETRIES = 10
RETRY_MODE = "standard"


class Ec2ClientReference:
    """Reference counted wrapper around a boto3 EC2 client.

    Starts with one reference owned by the slot that built it. The underlying
    client is closed when the count drops to zero, or immediately on
    ``force_close()``.
    """

    def __init__(self, client: Any) -> None:
        self._client = client
        self._lock = threading.Lock()
        self._refs = 1
        self._closed = False

    @property
    def client(self) -> Any:
        return self._client

    @property
    def ref_count(self) -> int:
        return self._refs

    @property
    def closed(self) -> bool:
        return self._closed

    def inc_ref(self) -> None:
        with self._lock:
            if self._refs <= 0:
                raise RuntimeError("EC2 client reference is already released")
            self._refs += 1

    def dec_ref(self) -> None:
        with self._lock:
            if self._refs <= 0:
                raise RuntimeError("EC2 client reference released too many times")
            self._refs -= 1
            last = self._refs == 0
        if last:
            self._close_client()

    def force_close(self) -> None:
        self._close_client()

    def _close_client(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.debug("Closing EC2 client")
        self._client.close()

    def __enter__(self) -> "Ec2ClientReference":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dec_ref()


class LazyClientSlot:
    """Holds at most one client reference, built on first acquire.

    Once retired the slot hands out nothing and drops its own reference, so the
    client is closed as soon as the current borrowers are done with it.
    """

    def __init__(self, settings: Ec2ClientSettings, factory: Callable[[Ec2ClientSettings], Any]) -> None:
        self.settings = settings
        self._factory = factory
        self._lock = threading.Lock()
        self._reference: Ec2ClientReference | None = None
        self._retired = False

    @property
    def retired(self) -> bool:
        return self._retired

    @property
    def reference(self) -> Ec2ClientReference | None:
        return self._reference

    def acquire(self) -> Ec2ClientReference | None:
        """Borrow the client, building it if needed. Returns None once retired."""
        with self._lock:
            if self._retired:
                return None
            if self._reference is None:
                self._reference = Ec2ClientReference(self._factory(self.settings))
            self._reference.inc_ref()
            return self._reference

    def retire(self) -> None:
        with self._lock:
            if self._retired:
                return
            self._retired = True
            reference = self._reference
        if reference is not None:
            reference.dec_ref()

    def close(self) -> None:
        """Retire and close right away, ignoring outstanding borrowers."""
        with self._lock:
            self._retired = True
            reference = self._reference
        if reference is not None:
            reference.force_close()


def set_default_aws_profile_path(session: botocore.session.Session, config_dir: str) -> None:
    """Point profile lookups at ``config_dir`` instead of the user home.

    Explicit AWS_SHARED_CREDENTIALS_FILE / AWS_CONFIG_FILE settings are left alone.
    """
    if not os.environ.get("AWS_SHARED_CREDENTIALS_FILE"):
        credentials_file = str(Path(config_dir) / "credentials")
        logger.info("setting aws shared credentials file=%s", credentials_file)
        session.set_config_variable("credentials_file", credentials_file)
    if not os.environ.get("AWS_CONFIG_FILE"):
        config_file = str(Path(config_dir) / "config")
        logger.info("setting aws config file=%s", config_file)
        session.set_config_variable("config_file", config_file)


def build_credentials(settings: Ec2ClientSettings) -> dict[str, str]:
    """Static credential arguments for boto3.Session; empty means the default chain."""
    credentials = settings.credentials
    if credentials is None:
        logger.debug("Using default credentials provider")
        return {}
    logger.debug("Using basic key/secret credentials")
    access_key, secret_key, session_token = credentials
    kwargs = {"aws_access_key_id": access_key, "aws_secret_access_key": secret_key}
    if session_token:
        kwargs["aws_session_token"] = session_token
    return kwargs


def build_proxy_configuration(settings: Ec2ClientSettings) -> dict[str, str]:
    proxy = settings.proxy
    if not proxy.host:
        return {}
    auth = ""
    if proxy.username:
        auth = quote(proxy.username, safe="")
        if proxy.password:
            auth += ":" + quote(proxy.password, safe="")
        auth += "@"
    proxy_url = f"{proxy.protocol}://{auth}{proxy.host}:{proxy.port}"
    return {"http": proxy_url, "https": proxy_url}


def build_retry_policy() -> dict[str, Any]:
    # Retries 5xx, throttling and transient connection errors with botocore's default backoff
    return {"max_attempts": MAX_RETRIES, "mode": RETRY_MODE}


def build_client_config(settings: Ec2ClientSettings) -> BotoConfig:
    return BotoConfig(
        region_name=settings.region,
        retries=build_retry_policy(),  # pyright: ignore[reportArgumentType]
        proxies=build_proxy_configuration(settings),
        read_timeout=settings.read_timeout_millis / 1000,
    )


class Ec2ClientService:
    """Owns the current EC2 client slot."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slot: LazyClientSlot | None = None

    def build_client(self, settings: Ec2ClientSettings) -> Any:
        """Build a boto3 EC2 client. Failures surface as ConfigurationError."""
        try:
            core_session = botocore.session.Session()
            set_default_aws_profile_path(core_session, settings.config_dir)
            session = boto3.Session(
                botocore_session=core_session,
                region_name=settings.region,
                **build_credentials(settings),
            )
            kwargs: dict[str, Any] = {"config": build_client_config(settings)}
            if settings.endpoint:
                logger.debug("using explicit ec2 endpoint [%s]", settings.endpoint)
                kwargs["endpoint_url"] = settings.endpoint
            return session.client("ec2", **kwargs)
        except (BotoCoreError, ClientError, ValueError) as e:
            raise ConfigurationError(f"Failed to build EC2 client: {e}", code=ErrorCode.CLIENT_BUILD_FAILED) from e

    def client(self) -> Ec2ClientReference:
        """Borrow the current client. The caller must release it (use ``with``)."""
        while True:
            with self._lock:
                slot = self._slot
            if slot is None:
                raise NotConfiguredError()
            reference = slot.acquire()
            if reference is not None:
                return reference
            # Swapped out between reading the slot and acquiring; retry on the new one.

    def refresh_and_clear_cache(self, settings: Ec2ClientSettings) -> None:
        """Install a client built lazily from ``settings`` and retire the old one."""
        new_slot = LazyClientSlot(settings, self.build_client)
        with self._lock:
            old_slot, self._slot = self._slot, new_slot
        if old_slot is not None:
            old_slot.retire()

    def close(self) -> None:
        with self._lock:
            slot, self._slot = self._slot, None
        if slot is not None:
            slot.close()
