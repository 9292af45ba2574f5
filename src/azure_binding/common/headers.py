"""Message header names shared by the Event Hub send and receive paths."""

PREFIX = "azure_"


class AzureHeaders:
    """Azure internal headers for messages."""

    PARTITION_ID = PREFIX + "partition_id"
    RAW_PARTITION_ID = PREFIX + "raw_partition_id"
    RAW_ID = "raw_id"

    PARTITION_KEY = PREFIX + "partition_key"

    NAME = PREFIX + "name"

    SCHEDULED_ENQUEUE_MESSAGE = "x-delay"

    # Checkpointer for the specific message, only set in MANUAL checkpoint mode
    CHECKPOINTER = PREFIX + "checkpointer"

    LOCK_TOKEN = PREFIX + "locktoken"

    MESSAGE_SESSION = PREFIX + "message_session"


class EventHubHeaders:
    """Headers populated from received EventData system properties."""

    ENQUEUED_TIME = PREFIX + "enqueued_time"
    OFFSET = PREFIX + "offset"
    SEQUENCE_NUMBER = PREFIX + "sequence_number"


# Headers that drive routing or local processing and are never put on the wire
INTERNAL_HEADERS = frozenset(
    {
        AzureHeaders.PARTITION_ID,
        AzureHeaders.PARTITION_KEY,
        AzureHeaders.RAW_PARTITION_ID,
        AzureHeaders.NAME,
        AzureHeaders.CHECKPOINTER,
        AzureHeaders.LOCK_TOKEN,
        AzureHeaders.MESSAGE_SESSION,
        EventHubHeaders.ENQUEUED_TIME,
        EventHubHeaders.OFFSET,
        EventHubHeaders.SEQUENCE_NUMBER,
    }
)

__all__ = ["AzureHeaders", "EventHubHeaders", "INTERNAL_HEADERS"]
