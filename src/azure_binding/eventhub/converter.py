"""Convert between framework messages and Event Hub EventData."""

import json
import logging
from typing import Any

from azure.eventhub import EventData

from azure_binding.common.headers import INTERNAL_HEADERS, AzureHeaders, EventHubHeaders
from azure_binding.common.types import Message
from core.utils.json_serializers import json_serializer

logger = logging.getLogger(__name__)

_PROPERTY_TYPES = (str, bytes, int, float, bool)


class EventHubMessageConverter:
    """Maps message payloads onto event bodies and headers onto event properties.

    Only scalar header values are lifted; routing headers such as the partition
    id or key and local objects such as the checkpointer never reach the wire.
    """

    @staticmethod
    def _serialize_payload(payload: Any) -> bytes:
        if isinstance(payload, bytes):
            return payload
        if isinstance(payload, str):
            return payload.encode("utf-8")
        if hasattr(payload, "model_dump_json"):
            return payload.model_dump_json().encode("utf-8")
        return json.dumps(payload, default=json_serializer).encode("utf-8")

    @staticmethod
    def _to_properties(headers) -> dict[str, Any]:
        properties = {}
        for name, value in headers.items():
            if name in INTERNAL_HEADERS:
                continue
            if isinstance(value, _PROPERTY_TYPES):
                properties[name] = value
            else:
                logger.debug("Skipping non-scalar header '%s' (%s)", name, type(value).__name__)
        return properties

    def from_message(self, message: Message) -> EventData:
        event_data = EventData(self._serialize_payload(message.payload))
        properties = self._to_properties(message.headers)
        if properties:
            event_data.properties = properties
        return event_data

    @staticmethod
    def _decode_properties(properties: dict | None) -> dict[str, Any]:
        if not properties:
            return {}
        decoded = {}
        for k, v in properties.items():
            name = k.decode("utf-8", errors="replace") if isinstance(k, bytes) else str(k)
            decoded[name] = v
        return decoded

    def to_message(
        self,
        event: EventData,
        eventhub_name: str,
        partition_id: str,
        extra_headers: dict[str, Any] | None = None,
    ) -> Message:
        """Build a Message from a received event.

        The payload is the raw body bytes. Application properties become
        headers, and the partition and system properties are added under the
        ``azure_`` names.
        """
        headers = self._decode_properties(event.properties)
        headers[AzureHeaders.NAME] = eventhub_name
        headers[AzureHeaders.RAW_PARTITION_ID] = partition_id
        headers[EventHubHeaders.ENQUEUED_TIME] = event.enqueued_time
        headers[EventHubHeaders.OFFSET] = event.offset
        headers[EventHubHeaders.SEQUENCE_NUMBER] = event.sequence_number
        if extra_headers:
            headers.update(extra_headers)

        body = event.body
        payload = body if isinstance(body, bytes) else b"".join(body)
        return Message(payload=payload, headers=headers)


__all__ = ["EventHubMessageConverter"]
