"""
Pytest configuration and fixtures for CloudWatch exporter tests.

AWS clients are MagicMocks; no test talks to AWS.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from cloudwatch_exporter.core.session import AwsClients
from tests.helpers import RecordingObserver


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def mock_cloudwatch_client():
    """Mock CloudWatch client with no metrics and no datapoints."""
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [{"Metrics": []}]
    client.get_metric_statistics.return_value = {"Datapoints": []}
    client.get_metric_data.return_value = {"MetricDataResults": []}
    return client


@pytest.fixture
def mock_tagging_client():
    """Mock Resource Groups Tagging API client with no resources."""
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [
        {"ResourceTagMappingList": []}
    ]
    return client


@pytest.fixture
def list_metrics_pages(mock_cloudwatch_client):
    """paginate() of the ListMetrics paginator; set return_value to a list of pages."""
    return mock_cloudwatch_client.get_paginator.return_value.paginate


@pytest.fixture
def get_resources_pages(mock_tagging_client):
    """paginate() of the GetResources paginator; set return_value to a list of pages."""
    return mock_tagging_client.get_paginator.return_value.paginate


@pytest.fixture
def aws_clients(mock_cloudwatch_client, mock_tagging_client):
    return AwsClients(cloudwatch=mock_cloudwatch_client, tagging=mock_tagging_client)


@pytest.fixture
def scrape_start():
    return datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc).timestamp()
