import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..core.constants import GET_RESOURCES
from ..core.exceptions import UpstreamError
from ..observers import NullRequestObserver, RequestObserver
from ..rules import MetricRule, TagSelect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceTagMapping:
    resource_arn: str
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def resource_id(self) -> str:
        return extract_resource_id(self.resource_arn)


def extract_resource_id(arn: str) -> str:
    """Return the resource id part of an ARN.

    'arn:aws:dynamodb:us-east-1:123:table/Foo' -> 'Foo'
    'arn:aws:dynamodb:us-east-1:123:table/Foo/index/Bar' -> 'Bar'
    """
    # https://docs.aws.amazon.com/general/latest/gr/aws-arns-and-namespaces.html
    resource_id = arn.split(":")[-1]
    if "/" in resource_id:
        resource_id = resource_id.split("/")[-1]
    return resource_id


class ResourceTagScanner:
    """Finds the resources selected by a rule's tag filters."""

    def __init__(self, client: Any, observer: Optional[RequestObserver] = None):
        self.client = client
        self.observer = observer or NullRequestObserver()

    def get_resource_tag_mappings(self, rule: MetricRule) -> List[ResourceTagMapping]:
        if rule.tag_select is None:
            return []
        return self._get_resources_by_tag(rule.tag_select)

    def _get_resources_by_tag(self, tag_select: TagSelect) -> List[ResourceTagMapping]:
        mappings: List[ResourceTagMapping] = []
        try:
            paginator = self.client.get_paginator("get_resources")
            for page in paginator.paginate(**self._build_request(tag_select)):
                self.observer.tagging_request(GET_RESOURCES, tag_select.resource_type)
                for item in page.get("ResourceTagMappingList", []):
                    mappings.append(
                        ResourceTagMapping(
                            resource_arn=item["ResourceARN"],
                            tags={tag["Key"]: tag["Value"] for tag in item.get("Tags", [])},
                        )
                    )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                f"Failed to fetch resources for type {tag_select.resource_type}: {e}"
            )
            raise UpstreamError(
                f"GetResources failed for {tag_select.resource_type}: {e}"
            ) from e

        logger.debug(
            f"Found {len(mappings)} resources of type '{tag_select.resource_type}'"
        )
        return mappings

    @staticmethod
    def _build_request(tag_select: TagSelect) -> Dict:
        return {
            "TagFilters": [
                {"Key": key, "Values": values}
                for key, values in tag_select.tag_filters.items()
            ],
            "ResourceTypeFilters": [tag_select.resource_type],
        }


def extract_resource_ids(mappings: List[ResourceTagMapping]) -> List[str]:
    return [mapping.resource_id for mapping in mappings]
