from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from .stores import ConditionalCheckFailedError, Item, KeyValueStore, UpdatePlan

logger = logging.getLogger(__name__)


def _is_conditional_check_failed(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


# PUBLIC_INTERFACE
def build_update_expression(plan: UpdatePlan) -> Dict[str, Any]:
    """
    Render an UpdatePlan as DynamoDB UpdateItem arguments.

    Attribute names always go through '#' placeholders so that reserved words
    (e.g. 'title') never clash with the expression grammar.

    Returns:
        Dict with UpdateExpression, ExpressionAttributeNames and, when anything
        is set, ExpressionAttributeValues.
    """
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    set_parts: List[str] = []
    remove_parts: List[str] = []

    for name, value in plan.set_fields.items():
        names[f"#{name}"] = name
        values[f":{name}"] = value
        set_parts.append(f"#{name} = :{name}")
    for name in plan.remove_fields:
        names[f"#{name}"] = name
        remove_parts.append(f"#{name}")

    expression_parts: List[str] = []
    if set_parts:
        expression_parts.append(f"SET {', '.join(set_parts)}")
    if remove_parts:
        expression_parts.append(f"REMOVE {', '.join(remove_parts)}")

    kwargs: Dict[str, Any] = {
        "UpdateExpression": " ".join(expression_parts),
        "ExpressionAttributeNames": names,
    }
    if values:
        kwargs["ExpressionAttributeValues"] = values
    return kwargs


class DynamoDBStore(KeyValueStore):
    """
    Key-value store backed by a DynamoDB table with a single 'pk' hash key.

    Uses the low-level boto3 client, which is safe to share between threads,
    so one instance serves every in-flight request. Items are marshalled to
    and from DynamoDB's typed attribute format here.
    """

    def __init__(self, client: Any, table_name: str) -> None:
        self._client = client
        self._table_name = table_name
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @classmethod
    def from_settings(
        cls, table_name: str, region: str, endpoint_url: Optional[str] = None
    ) -> "DynamoDBStore":
        """Create a store for table_name using a new boto3 DynamoDB client."""
        client = boto3.client("dynamodb", region_name=region, endpoint_url=endpoint_url)
        logger.info(
            "Initialized AWS DynamoDB client",
            extra={"backend": "dynamodb", "table": table_name, "region": region},
        )
        return cls(client, table_name)

    @property
    def _condition(self) -> str:
        return f"attribute_exists({self.key_attribute})"

    def _marshal(self, item: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: self._serializer.serialize(value) for name, value in item.items()}

    def _unmarshal(self, item: Mapping[str, Any]) -> Item:
        return {name: self._deserializer.deserialize(value) for name, value in item.items()}

    def _key(self, key: str) -> Dict[str, Any]:
        return {self.key_attribute: {"S": key}}

    def scan(self) -> List[Item]:
        items: List[Item] = []
        kwargs: Dict[str, Any] = {"TableName": self._table_name}
        while True:
            response = self._client.scan(**kwargs)
            items.extend(self._unmarshal(raw) for raw in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        logger.debug("DynamoDB scan returned %d items", len(items), extra={"count": len(items)})
        return items

    def get_item(self, key: str) -> Optional[Item]:
        response = self._client.get_item(TableName=self._table_name, Key=self._key(key))
        raw = response.get("Item")
        return None if raw is None else self._unmarshal(raw)

    def put_item(self, item: Mapping[str, Any]) -> None:
        self._client.put_item(TableName=self._table_name, Item=self._marshal(item))

    def update_item(self, key: str, plan: UpdatePlan) -> Item:
        kwargs = build_update_expression(plan)
        if "ExpressionAttributeValues" in kwargs:
            kwargs["ExpressionAttributeValues"] = self._marshal(kwargs["ExpressionAttributeValues"])
        logger.debug("DynamoDB update_item %s: %s", key, kwargs["UpdateExpression"])
        try:
            response = self._client.update_item(
                TableName=self._table_name,
                Key=self._key(key),
                ConditionExpression=self._condition,
                ReturnValues="ALL_NEW",
                **kwargs,
            )
        except ClientError as exc:
            if _is_conditional_check_failed(exc):
                raise ConditionalCheckFailedError(key) from exc
            raise
        return self._unmarshal(response["Attributes"])

    def delete_item(self, key: str) -> None:
        try:
            self._client.delete_item(
                TableName=self._table_name,
                Key=self._key(key),
                ConditionExpression=self._condition,
            )
        except ClientError as exc:
            if _is_conditional_check_failed(exc):
                raise ConditionalCheckFailedError(key) from exc
            raise
