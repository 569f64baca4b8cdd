"""RDS IAM token signing backed by boto3."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import SigningFailed
from .models import CredentialOptions

LOG = logging.getLogger(__name__)

DEFAULT_TOKEN_WINDOW = timedelta(minutes=15)
ROLE_SESSION_PREFIX = "iamdbauth-"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@runtime_checkable
class TokenSigner(Protocol):
    """Protocol implemented by token signers."""

    def mint(
        self,
        host: str,
        port: int,
        account_name: str,
        region: str,
        credentials: CredentialOptions | None = None,
    ) -> tuple[str, datetime]:
        """Return a signed token and the instant it expires."""


class BotoTokenSigner:
    """Signer that calls ``generate_db_auth_token`` on a boto3 RDS client."""

    def __init__(
        self,
        *,
        token_window: timedelta = DEFAULT_TOKEN_WINDOW,
        clock: Clock = utcnow,
        session_factory: Callable[..., boto3.Session] = boto3.Session,
    ) -> None:
        self._token_window = token_window
        self._clock = clock
        self._session_factory = session_factory

    def mint(
        self,
        host: str,
        port: int,
        account_name: str,
        region: str,
        credentials: CredentialOptions | None = None,
    ) -> tuple[str, datetime]:
        options = credentials or CredentialOptions()
        try:
            session = self._session_for(options, region)
            client = session.client("rds", region_name=region)
            token = client.generate_db_auth_token(
                DBHostname=host,
                Port=port,
                DBUsername=account_name,
                Region=region,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SigningFailed(f"Failed to sign IAM auth token for {account_name}@{host}:{port}: {exc}") from exc
        # The token protocol does not echo an expiry, so it is computed locally.
        expires_at = self._clock() + self._token_window
        LOG.debug(
            "Signed IAM auth token",
            extra={"host": host, "port": port, "account": account_name, "region": region},
        )
        return token, expires_at

    def _session_for(self, options: CredentialOptions, region: str) -> boto3.Session:
        if options.has_static_keys:
            base = self._session_factory(
                aws_access_key_id=options.access_key_id,
                aws_secret_access_key=options.secret_access_key,
                region_name=region,
            )
        elif options.profile:
            base = self._session_factory(profile_name=options.profile, region_name=region)
        else:
            base = self._session_factory(region_name=region)
        if not options.role_arn:
            return base
        return self._assume_role(base, options, region)

    def _assume_role(self, base: boto3.Session, options: CredentialOptions, region: str) -> boto3.Session:
        params: dict[str, str] = {
            "RoleArn": options.role_arn or "",
            "RoleSessionName": options.role_session_name or f"{ROLE_SESSION_PREFIX}{uuid.uuid4().hex}",
        }
        if options.external_id:
            params["ExternalId"] = options.external_id
        response = base.client("sts", region_name=region).assume_role(**params)
        creds = response["Credentials"]
        LOG.debug("Assumed role for token signing", extra={"role_arn": options.role_arn})
        return self._session_factory(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            region_name=region,
        )


def resolve_region(profile: str | None = None) -> str | None:
    """Return the region configured for ``profile`` or the ambient default."""

    if profile:
        try:
            region = boto3.Session(profile_name=profile).region_name
        except BotoCoreError:
            # An unknown profile names no region; the ambient chain still might.
            region = None
        if region:
            return region
    try:
        return boto3.Session().region_name
    except BotoCoreError:
        # e.g. AWS_PROFILE naming a missing profile; callers treat None as unresolved.
        return None


__all__ = [
    "BotoTokenSigner",
    "Clock",
    "DEFAULT_TOKEN_WINDOW",
    "TokenSigner",
    "resolve_region",
    "utcnow",
]
