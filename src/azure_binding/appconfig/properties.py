"""App Configuration store settings."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from core.errors.exceptions import ConfigValidationError

# Label filter value App Configuration uses for key-values without a label
EMPTY_LABEL = "\0"


def _parse_labels(labels: str | Iterable[str] | None) -> tuple[str, ...]:
    if labels is None:
        return (EMPTY_LABEL,)
    if isinstance(labels, str):
        labels = labels.split(",")
    parsed = tuple(label.strip() or EMPTY_LABEL for label in labels)
    return parsed or (EMPTY_LABEL,)


@dataclass(frozen=True)
class ConfigStore:
    """One App Configuration store.

    Attributes:
        name: Store name, also the key used to find its connection string
        prefix: Optional path prefix prepended to every context
        labels: Labels in declared order. Accepts a comma-separated string;
            blank entries select key-values without a label.
        connection_string: Store connection string
    """

    name: str
    prefix: str = ""
    labels: tuple[str, ...] = (EMPTY_LABEL,)
    connection_string: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigValidationError("App Configuration store name can't be empty")
        object.__setattr__(self, "labels", _parse_labels(self.labels))
        object.__setattr__(self, "prefix", (self.prefix or "").strip())

    def labels_by_precedence(self) -> tuple[str, ...]:
        """Labels with the highest precedence (last declared) first."""
        return tuple(reversed(self.labels))


@dataclass(frozen=True)
class AppConfigurationProperties:
    """Settings for the property locator.

    Attributes:
        stores: Stores in configuration order; the last one has the highest precedence
        default_context: Context shared by every application
        profile_separator: Joins a context with an active profile
        name: Application name override
        fail_fast: Abort on the first fetch failure instead of skipping the source
    """

    stores: tuple[ConfigStore, ...] = field(default_factory=tuple)
    default_context: str = "application"
    profile_separator: str = "_"
    name: str | None = None
    fail_fast: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "stores", tuple(self.stores))
        names = [store.name for store in self.stores]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigValidationError(f"Duplicate App Configuration store names: {duplicates}")

    @property
    def connection_strings(self) -> dict[str, str]:
        return {store.name: store.connection_string for store in self.stores}


__all__ = ["EMPTY_LABEL", "AppConfigurationProperties", "ConfigStore"]
