"""
Tests for boto3 session and client construction.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from cloudwatch_exporter.core.session import build_clients, create_session
from tests.helpers import client_error

ROLE_ARN = "arn:aws:iam::123456789012:role/cloudwatch-exporter"


def sts_credentials(key_id, expires_in):
    return {
        "Credentials": {
            "AccessKeyId": key_id,
            "SecretAccessKey": f"{key_id}-secret",
            "SessionToken": f"{key_id}-token",
            "Expiration": datetime.now(timezone.utc) + expires_in,
        }
    }


@pytest.fixture
def sts_client():
    client = MagicMock()
    with patch("cloudwatch_exporter.core.session.boto3.client", return_value=client):
        yield client


class TestAssumedRoleSession:
    def test_credentials_are_refreshed_before_expiry(self, sts_client):
        sts_client.assume_role.side_effect = [
            sts_credentials("AKIAFIRST", timedelta(minutes=1)),
            sts_credentials("AKIASECOND", timedelta(hours=1)),
        ]

        session = create_session("us-east-1", ROLE_ARN)
        assert sts_client.assume_role.call_count == 1

        frozen = session.get_credentials().get_frozen_credentials()

        assert frozen.access_key == "AKIASECOND"
        assert frozen.token == "AKIASECOND-token"
        assert sts_client.assume_role.call_count == 2
        sts_client.assume_role.assert_called_with(
            RoleArn=ROLE_ARN, RoleSessionName="cloudwatch_exporter"
        )

    def test_fresh_credentials_are_reused(self, sts_client):
        sts_client.assume_role.return_value = sts_credentials("AKIAFIRST", timedelta(hours=1))

        session = create_session("us-east-1", ROLE_ARN)
        session.get_credentials().get_frozen_credentials()
        session.get_credentials().get_frozen_credentials()

        assert sts_client.assume_role.call_count == 1
        assert session.region_name == "us-east-1"

    def test_assume_role_failure_propagates(self, sts_client):
        sts_client.assume_role.side_effect = client_error("AssumeRole", "AccessDenied")

        with pytest.raises(ClientError) as excinfo:
            create_session("us-east-1", ROLE_ARN)

        assert excinfo.value.response["Error"]["Code"] == "AccessDenied"


def test_injected_clients_skip_session_creation():
    cloudwatch, tagging = MagicMock(), MagicMock()

    with patch("cloudwatch_exporter.core.session.create_session") as create:
        clients = build_clients(
            role_arn=ROLE_ARN, cloudwatch_client=cloudwatch, tagging_client=tagging
        )

    create.assert_not_called()
    assert clients.cloudwatch is cloudwatch
    assert clients.tagging is tagging
