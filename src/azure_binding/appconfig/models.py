"""Key-value items, queries and the environment seen by the locator."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

APPLICATION_NAME_PROPERTY = "application.name"


class KeyValueItem(BaseModel):
    """A key-value as returned by App Configuration."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Full key including the context prefix")
    value: str | None = Field(default=None, description="Stored value")
    label: str | None = Field(default=None, description="Label, None when unlabeled")
    content_type: str | None = Field(default=None, description="Optional content type")
    etag: str | None = Field(default=None, description="Entity tag of the revision")


class QueryOptions(BaseModel):
    """Filters for listing key-values.

    ``key_filter`` supports a trailing ``*`` for prefix matching.
    """

    model_config = ConfigDict(frozen=True)

    key_filter: str = "*"
    label_filter: str | None = None


@dataclass(frozen=True)
class EnvironmentView:
    """What the host application exposes to the locator.

    Attributes:
        application_name: Explicit application name
        active_profiles: Active profiles in activation order
        get_property: Free-form property lookup used when no name is given
    """

    application_name: str | None = None
    active_profiles: Sequence[str] = field(default_factory=tuple)
    get_property: Callable[[str], str | None] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "active_profiles", tuple(self.active_profiles))

    def resolve_application_name(self) -> str | None:
        if self.application_name:
            return self.application_name
        if self.get_property is not None:
            return self.get_property(APPLICATION_NAME_PROPERTY)
        return None


__all__ = ["APPLICATION_NAME_PROPERTY", "EnvironmentView", "KeyValueItem", "QueryOptions"]
