"""
Core domain entities for GitRepoExporter.
These represent the business objects in our system.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional

from core.errors import CloneError, ConfigurationError

NO_LANGUAGE = "n/a"


@dataclass(frozen=True)
class Owner:
    """User or organization account holding a repository."""
    name: str
    is_organization: bool = False


@dataclass(frozen=True)
class Repository:
    """
    Repository entity representing a GitHub repository visible to the
    authenticated account. Identity is the full name.
    """
    name: str
    full_name: str
    clone_url: str
    owner: Owner
    language: str = NO_LANGUAGE
    is_private: bool = False

    def __post_init__(self):
        """Validate repository data."""
        if not self.name or not self.full_name:
            raise ValueError("name and full_name are required")
        if not self.owner.name:
            raise ValueError("owner name is required")


def repository_from_api(raw: dict) -> Repository:
    """
    Map a raw GitHub API repository entry into a Repository.

    The owner name is taken from the full name, the organization flag from
    the owner type, and the language is lowercased with a sentinel when
    GitHub reports none.
    """
    full_name = raw["full_name"]
    owner_type = (raw.get("owner") or {}).get("type") or ""

    return Repository(
        name=raw["name"],
        full_name=full_name,
        clone_url=raw["clone_url"],
        owner=Owner(
            name=full_name.split("/", 1)[0],
            is_organization=owner_type.lower() == "organization",
        ),
        language=(raw.get("language") or NO_LANGUAGE).lower(),
        is_private=bool(raw.get("private", False)),
    )


@dataclass(frozen=True)
class RepositoryPage:
    """
    Answer of the list capability for a single page.
    """
    items: List[dict]
    ok: bool = True
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Occurrence:
    """Entry of a ranked occurrence table."""
    name: str
    count: int


@dataclass(frozen=True)
class Statistics:
    """
    Summary derived from the fetched repositories.
    Never mutated after construction.
    """
    public: tuple = ()
    private: tuple = ()
    users: tuple = ()
    organizations: tuple = ()
    languages: tuple = ()

    @property
    def public_count(self) -> int:
        return len(self.public)

    @property
    def private_count(self) -> int:
        return len(self.private)

    @property
    def total(self) -> int:
        return self.public_count + self.private_count


class Visibility(str, Enum):
    ALL = "all"
    PUBLIC = "public"
    PRIVATE = "private"


class OwnerType(str, Enum):
    ALL = "all"
    USER = "user"
    ORG = "org"


def _coerce_enum(enum_cls, value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"Unrecognized {label} {value!r} (expected one of: {choices})"
        ) from None


def _coerce_names(value: Optional[Iterable[str]], label: str) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, str):
        raise ConfigurationError(f"{label} must be a collection of names, not a string")

    names = frozenset(value)
    if not names:
        raise ConfigurationError(f"{label} is empty; no repository could ever match")
    if not all(isinstance(name, str) for name in names):
        raise ConfigurationError(f"{label} must only contain strings")
    return names


@dataclass(frozen=True)
class FilterConfiguration:
    """
    Selection of repositories to clone.

    Attributes:
        visibility: Public, private or all repositories.
        owner_type: Repositories owned by users, organizations or both.
        only_from: Owner names to keep (None for no restriction).
        languages: Lowercased language names to keep (None for no restriction).
    """
    visibility: Visibility = Visibility.ALL
    owner_type: OwnerType = OwnerType.ALL
    only_from: Optional[frozenset] = None
    languages: Optional[frozenset] = None

    def __post_init__(self):
        """Coerce raw values and reject invalid configurations."""
        object.__setattr__(
            self, "visibility", _coerce_enum(Visibility, self.visibility, "visibility")
        )
        object.__setattr__(
            self, "owner_type", _coerce_enum(OwnerType, self.owner_type, "owner type")
        )
        object.__setattr__(self, "only_from", _coerce_names(self.only_from, "only_from"))
        object.__setattr__(self, "languages", _coerce_names(self.languages, "languages"))

    @property
    def is_unrestricted(self) -> bool:
        return (
            self.visibility is Visibility.ALL
            and self.owner_type is OwnerType.ALL
            and self.only_from is None
            and self.languages is None
        )


@dataclass(frozen=True)
class CloneOutcome:
    """
    Settled result of one clone attempt. A missing error means success.
    """
    repository: Repository
    path: Path
    error: Optional[CloneError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class CloneReport:
    """
    Outcomes of a clone run. Append-only while the run is in progress and
    frozen by finalize() once every batch has settled.
    """
    outcomes: List[CloneOutcome] = field(default_factory=list)
    finalized: bool = False
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def record(self, outcome: CloneOutcome) -> None:
        with self._lock:
            if self.finalized:
                raise RuntimeError("Clone report is finalized")
            self.outcomes.append(outcome)

    def finalize(self) -> "CloneReport":
        with self._lock:
            self.finalized = True
        return self

    @property
    def succeeded(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def __len__(self) -> int:
        return len(self.outcomes)


@dataclass
class ExportResult:
    """
    Result of a complete export run.
    """
    repositories: List[Repository]
    statistics: Statistics
    selected: List[Repository]
    report: CloneReport
