import boto3
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.credentials import RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError
from botocore.session import get_session

from .constants import ROLE_SESSION_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwsClients:
    """CloudWatch and Resource Groups Tagging API clients used by one config."""

    cloudwatch: Any
    tagging: Any


def fetch_role_credentials(
    role_arn: str,
    region: Optional[str] = None,
    role_session_name: str = ROLE_SESSION_NAME,
) -> Dict[str, str]:
    """Call STS AssumeRole and return the credentials in botocore metadata form."""
    try:
        credentials = boto3.client("sts", region_name=region).assume_role(
            RoleArn=role_arn, RoleSessionName=role_session_name
        )["Credentials"]
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to assume role {role_arn}: {e}")
        raise

    logger.debug(f"Assumed role {role_arn} until {credentials['Expiration']}")
    return {
        "access_key": credentials["AccessKeyId"],
        "secret_key": credentials["SecretAccessKey"],
        "token": credentials["SessionToken"],
        "expiry_time": credentials["Expiration"].isoformat(),
    }


def assume_role(
    role_arn: str,
    region: Optional[str] = None,
    role_session_name: str = ROLE_SESSION_NAME,
) -> boto3.Session:
    """Return a boto3 Session whose credentials re-assume the role before they expire."""

    def refresh() -> Dict[str, str]:
        return fetch_role_credentials(role_arn, region, role_session_name)

    credentials = RefreshableCredentials.create_from_metadata(
        metadata=refresh(),
        refresh_using=refresh,
        method="sts-assume-role",
    )
    botocore_session = get_session()
    botocore_session._credentials = credentials
    return boto3.Session(botocore_session=botocore_session, region_name=region)


def create_session(
    region: Optional[str] = None, role_arn: Optional[str] = None
) -> boto3.Session:
    if role_arn:
        return assume_role(role_arn, region)
    return boto3.Session(region_name=region)


def build_clients(
    region: Optional[str] = None,
    role_arn: Optional[str] = None,
    cloudwatch_client: Any = None,
    tagging_client: Any = None,
) -> AwsClients:
    """Build the client pair, keeping any client that was injected by the caller."""
    if cloudwatch_client is not None and tagging_client is not None:
        return AwsClients(cloudwatch=cloudwatch_client, tagging=tagging_client)

    session = create_session(region, role_arn)
    return AwsClients(
        cloudwatch=cloudwatch_client or session.client("cloudwatch"),
        tagging=tagging_client or session.client("resourcegroupstaggingapi"),
    )
