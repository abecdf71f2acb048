"""
Tests for tag based resource selection.
"""

import pytest

from cloudwatch_exporter.core.exceptions import UpstreamError
from cloudwatch_exporter.dimensions.tags import (
    ResourceTagScanner,
    extract_resource_id,
    extract_resource_ids,
)
from cloudwatch_exporter.rules import MetricRule, TagSelect
from tests.helpers import client_error, tag_mapping


@pytest.fixture
def tagged_rule():
    return MetricRule(
        namespace="AWS/DynamoDB",
        metric_name="ConsumedReadCapacityUnits",
        dimensions=("TableName",),
        tag_select=TagSelect(
            resource_type="dynamodb:table",
            resource_id_dimension="TableName",
            tag_filters={"Environment": ["prod"]},
        ),
    )


@pytest.mark.parametrize(
    "arn, expected",
    [
        ("arn:aws:dynamodb:us-east-1:123:table/Foo", "Foo"),
        ("arn:aws:dynamodb:us-east-1:123:table/Foo/index/Bar", "Bar"),
        ("arn:aws:rds:eu-west-1:123:db:my-database", "my-database"),
        ("arn:aws:ec2:eu-west-1:123:instance/i-0123456789abcdef0", "i-0123456789abcdef0"),
        ("arn:aws:sqs:us-east-1:123:my-queue", "my-queue"),
    ],
)
def test_extract_resource_id(arn, expected):
    assert extract_resource_id(arn) == expected


class TestResourceTagScanner:
    def test_rule_without_tag_select_makes_no_call(
        self, mock_tagging_client, get_resources_pages, observer
    ):
        rule = MetricRule(namespace="AWS/ELB", metric_name="RequestCount")

        assert ResourceTagScanner(mock_tagging_client, observer).get_resource_tag_mappings(rule) == []
        get_resources_pages.assert_not_called()
        assert observer.tagging_requests == []

    def test_reads_every_page(
        self, mock_tagging_client, get_resources_pages, observer, tagged_rule
    ):
        get_resources_pages.return_value = [
            {
                "ResourceTagMappingList": [
                    tag_mapping("arn:aws:dynamodb:us-east-1:123:table/Foo", Environment="prod")
                ],
                "PaginationToken": "next",
            },
            {
                "ResourceTagMappingList": [
                    tag_mapping("arn:aws:dynamodb:us-east-1:123:table/Bar", Environment="prod", Team="data")
                ],
                "PaginationToken": "",
            },
        ]

        mappings = ResourceTagScanner(mock_tagging_client, observer).get_resource_tag_mappings(
            tagged_rule
        )

        assert [m.resource_arn for m in mappings] == [
            "arn:aws:dynamodb:us-east-1:123:table/Foo",
            "arn:aws:dynamodb:us-east-1:123:table/Bar",
        ]
        assert mappings[1].tags == {"Environment": "prod", "Team": "data"}
        assert extract_resource_ids(mappings) == ["Foo", "Bar"]

        mock_tagging_client.get_paginator.assert_called_once_with("get_resources")
        get_resources_pages.assert_called_once_with(
            TagFilters=[{"Key": "Environment", "Values": ["prod"]}],
            ResourceTypeFilters=["dynamodb:table"],
        )
        assert observer.tagging_requests == [("getResources", "dynamodb:table")] * 2

    def test_api_failure_is_upstream_error(
        self, mock_tagging_client, get_resources_pages, tagged_rule
    ):
        get_resources_pages.side_effect = client_error("GetResources")

        with pytest.raises(UpstreamError):
            ResourceTagScanner(mock_tagging_client).get_resource_tag_mappings(tagged_rule)
