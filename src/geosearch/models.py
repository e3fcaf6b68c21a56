"""
Data models for geo-search.

Criteria, suggestions, bounds and the business records returned by the
search API. Wire form uses the API's camelCase keys; optional fields are
omitted when absent.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class SearchMode(str, Enum):
    """Which search panel is displayed."""

    TEXT = "text"
    MAP = "map"


class FieldType(str, Enum):
    """Input fields that take free text."""

    BUSINESS_NAME = "businessName"
    SECTOR = "sector"
    COUNTRY = "country"
    REGION = "region"
    CITY = "city"
    STREET = "street"
    POSTCODE = "postcode"  # submissions only, no suggestions


AUTOCOMPLETE_FIELDS = (
    FieldType.BUSINESS_NAME,
    FieldType.SECTOR,
    FieldType.COUNTRY,
    FieldType.REGION,
    FieldType.CITY,
    FieldType.STREET,
)


class SuggestionType(str, Enum):
    """Where a suggestion comes from."""

    VERIFIED = "verified"
    USER_SUBMITTED = "userSubmitted"


class SortBy(str, Enum):
    DISTANCE = "distance"
    NAME = "name"
    RELEVANCE = "relevance"


class SubmissionStatus(str, Enum):
    """Moderation status of a user-submitted entry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BusinessStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


def _parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing Z."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# -----------------------------------------------------------------------------
# Criteria
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coordinates":
        # Device APIs report latitude/longitude; the search API uses lat/lng
        lat = data["lat"] if "lat" in data else data["latitude"]
        lng = data["lng"] if "lng" in data else data["longitude"]
        return cls(lat=float(lat), lng=float(lng))


@dataclass(frozen=True)
class LocationCriteria:
    """
    Hierarchical location filter.

    Each level narrows the previous one (country > region > city > street)
    but no level implies or clears another. None means unconstrained.
    """

    country: str | None = None
    region: str | None = None
    city: str | None = None
    street: str | None = None
    postcode: str | None = None
    coordinates: Coordinates | None = None

    def is_empty(self) -> bool:
        return all(
            getattr(self, name) is None
            for name in ("country", "region", "city", "street", "postcode", "coordinates")
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unconstrained levels."""
        result: dict[str, Any] = {}
        for name in ("country", "region", "city", "street", "postcode"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.coordinates is not None:
            result["coordinates"] = self.coordinates.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocationCriteria":
        coords = data.get("coordinates")
        return cls(
            country=data.get("country"),
            region=data.get("region"),
            city=data.get("city"),
            street=data.get("street"),
            postcode=data.get("postcode"),
            coordinates=Coordinates.from_dict(coords) if coords else None,
        )


DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class SearchCriteria:
    """Structured filter set for a text search. Built fresh per submission."""

    business_name: str | None = None
    sector: str | None = None
    location: LocationCriteria = field(default_factory=LocationCriteria)
    rewards_only: bool = False
    campaigns_only: bool = False
    distance: float | None = None  # miles
    sort_by: SortBy = SortBy.DISTANCE
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.distance is not None and self.distance < 0:
            raise ValueError(f"distance must not be negative, got {self.distance}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's request body shape."""
        result: dict[str, Any] = {}
        if self.business_name is not None:
            result["businessName"] = self.business_name
        if self.sector is not None:
            result["sector"] = self.sector
        result["location"] = self.location.to_dict()
        result["rewardsOnly"] = self.rewards_only
        result["campaignsOnly"] = self.campaigns_only
        if self.distance is not None:
            result["distance"] = self.distance
        result["sortBy"] = self.sort_by.value
        result["page"] = self.page
        result["pageSize"] = self.page_size
        return result

    def filter_dict(self) -> dict[str, Any]:
        """Filters only, for merging into a map search body."""
        result = self.to_dict()
        for key in ("page", "pageSize", "sortBy"):
            result.pop(key, None)
        if not result["location"]:
            del result["location"]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchCriteria":
        return cls(
            business_name=data.get("businessName"),
            sector=data.get("sector"),
            location=LocationCriteria.from_dict(data.get("location") or {}),
            rewards_only=bool(data.get("rewardsOnly", False)),
            campaigns_only=bool(data.get("campaignsOnly", False)),
            distance=data.get("distance"),
            sort_by=SortBy(data.get("sortBy", SortBy.DISTANCE.value)),
            page=data.get("page", 1),
            page_size=data.get("pageSize") or DEFAULT_PAGE_SIZE,
        )


@dataclass(frozen=True)
class MapBounds:
    """Rectangular geospatial query region."""

    northeast: Coordinates
    southwest: Coordinates

    def __post_init__(self):
        if not (
            self.northeast.lat > self.southwest.lat
            and self.northeast.lng > self.southwest.lng
        ):
            raise ValueError(
                f"northeast {self.northeast} must lie north-east of southwest {self.southwest}"
            )

    @classmethod
    def around(cls, center: Coordinates, half_width: float) -> "MapBounds":
        """
        Square box centred on a point, half_width degrees on each axis.

        This is a flat-degree approximation: the east-west extent shrinks
        in kilometres as latitude moves away from the equator.
        """
        if half_width <= 0:
            raise ValueError(f"half_width must be positive, got {half_width}")
        return cls(
            northeast=Coordinates(lat=center.lat + half_width, lng=center.lng + half_width),
            southwest=Coordinates(lat=center.lat - half_width, lng=center.lng - half_width),
        )

    def contains(self, point: Coordinates) -> bool:
        return (
            self.southwest.lat <= point.lat <= self.northeast.lat
            and self.southwest.lng <= point.lng <= self.northeast.lng
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "northeast": self.northeast.to_dict(),
            "southwest": self.southwest.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MapBounds":
        return cls(
            northeast=Coordinates.from_dict(data["northeast"]),
            southwest=Coordinates.from_dict(data["southwest"]),
        )


# -----------------------------------------------------------------------------
# Suggestions
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class BusinessNameMetadata:
    """Metadata attached to business-name suggestions."""

    business_id: str | None = None
    sector: str | None = None
    city: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        if self.business_id is not None:
            result["businessId"] = self.business_id
        if self.sector is not None:
            result["sector"] = self.sector
        if self.city is not None:
            result["city"] = self.city
        return result


@dataclass(frozen=True)
class SectorMetadata:
    """Metadata attached to sector suggestions."""

    business_count: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        if self.business_count is not None:
            result["businessCount"] = self.business_count
        return result


@dataclass(frozen=True)
class PlaceMetadata:
    """Metadata attached to country/region/city/street suggestions."""

    parent: str | None = None  # e.g. the region a city belongs to
    country_code: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        if self.parent is not None:
            result["parent"] = self.parent
        if self.country_code is not None:
            result["countryCode"] = self.country_code
        return result


SuggestionMetadata = BusinessNameMetadata | SectorMetadata | PlaceMetadata


def parse_metadata(field_type: FieldType, data: dict[str, Any] | None) -> SuggestionMetadata | None:
    """Build the metadata variant for a field type."""
    if data is None:
        return None
    data = dict(data)
    if field_type == FieldType.BUSINESS_NAME:
        return BusinessNameMetadata(
            business_id=data.pop("businessId", None),
            sector=data.pop("sector", None),
            city=data.pop("city", None),
            extra=data,
        )
    if field_type == FieldType.SECTOR:
        count = data.pop("businessCount", None)
        return SectorMetadata(
            business_count=int(count) if count is not None else None,
            extra=data,
        )
    return PlaceMetadata(
        parent=data.pop("parent", None),
        country_code=data.pop("countryCode", None),
        extra=data,
    )


@dataclass(frozen=True)
class AutocompleteSuggestion:
    """A completion offered for a free-text field."""

    value: str  # canonical form
    label: str  # display form
    type: SuggestionType
    metadata: SuggestionMetadata | None = None

    @property
    def pending_review(self) -> bool:
        """True for community entries awaiting moderation."""
        return self.type == SuggestionType.USER_SUBMITTED

    def matches(self, text: str) -> bool:
        """Case-insensitive, whitespace-trimmed comparison with the value."""
        return self.value.strip().casefold() == text.strip().casefold()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "value": self.value,
            "label": self.label,
            "type": self.type.value,
        }
        if self.metadata is not None:
            result["metadata"] = self.metadata.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], field_type: FieldType) -> "AutocompleteSuggestion":
        """
        Parse a suggestion from the API.

        The type must be present in the payload; it is never guessed.
        """
        raw_type = data.get("type")
        if raw_type is None:
            raise ValueError(f"Suggestion {data.get('value')!r} has no type")
        value = data["value"]
        return cls(
            value=value,
            label=data.get("label") or value,
            type=SuggestionType(raw_type),
            metadata=parse_metadata(field_type, data.get("metadata")),
        )


@dataclass
class UserSubmittedEntry:
    """A free-typed value queued for moderation."""

    field_type: FieldType
    entered_value: str
    user_id: str
    session_id: str
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: SubmissionStatus = SubmissionStatus.PENDING
    id: str | None = None

    def to_request(self) -> dict[str, Any]:
        """Body for the submission endpoint."""
        return {
            "fieldType": self.field_type.value,
            "enteredValue": self.entered_value,
            "context": self.context,
            "userId": self.user_id,
            "sessionId": self.session_id,
        }

    def to_dict(self) -> dict[str, Any]:
        result = self.to_request()
        result["timestamp"] = self.timestamp.isoformat()
        result["status"] = self.status.value
        if self.id:
            result["id"] = self.id
        return result


@dataclass(frozen=True)
class SubmissionReceipt:
    """Acknowledgement returned by the submission endpoint."""

    id: str
    status: SubmissionStatus
    message: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubmissionReceipt":
        return cls(
            id=str(data["id"]),
            status=SubmissionStatus(data.get("status", SubmissionStatus.PENDING.value)),
            message=data.get("message", ""),
        )


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RewardProgram:
    id: str
    name: str
    description: str = ""
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
        }
        if self.start_date:
            result["startDate"] = _format_datetime(self.start_date)
        if self.end_date:
            result["endDate"] = _format_datetime(self.end_date)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RewardProgram":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
            active=bool(data.get("active", True)),
            start_date=_parse_datetime(data.get("startDate")),
            end_date=_parse_datetime(data.get("endDate")),
        )


@dataclass(frozen=True)
class Campaign:
    id: str
    name: str
    description: str = ""
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
        }
        if self.start_date:
            result["startDate"] = _format_datetime(self.start_date)
        if self.end_date:
            result["endDate"] = _format_datetime(self.end_date)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Campaign":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
            active=bool(data.get("active", True)),
            start_date=_parse_datetime(data.get("startDate")),
            end_date=_parse_datetime(data.get("endDate")),
        )


@dataclass(frozen=True)
class BusinessLocation:
    """Resolved address of a business."""

    formatted_address: str
    coordinates: Coordinates | None = None
    country: str = ""
    region: str = ""
    city: str = ""
    street: str = ""
    postcode: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "country": self.country,
            "region": self.region,
            "city": self.city,
            "street": self.street,
            "postcode": self.postcode,
            "formattedAddress": self.formatted_address,
        }
        if self.coordinates is not None:
            result["coordinates"] = self.coordinates.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BusinessLocation":
        coords = data.get("coordinates")
        formatted = data.get("formattedAddress")
        if not formatted:
            parts = [data.get(k) for k in ("street", "city", "postcode")]
            formatted = ", ".join(p for p in parts if p)
        return cls(
            formatted_address=formatted,
            coordinates=Coordinates.from_dict(coords) if coords else None,
            country=data.get("country", ""),
            region=data.get("region", ""),
            city=data.get("city", ""),
            street=data.get("street", ""),
            postcode=data.get("postcode", ""),
        )


@dataclass(frozen=True)
class Business:
    """Read-only business record from a search response."""

    id: str
    name: str
    sector: str
    location: BusinessLocation
    rewards_programs: tuple[RewardProgram, ...] = ()
    campaigns: tuple[Campaign, ...] = ()
    status: BusinessStatus = BusinessStatus.ACTIVE
    thumbnail_url: str | None = None
    created_date: datetime | None = None
    distance_from_search: float | None = None  # miles, spatial queries only

    @property
    def active_rewards_count(self) -> int:
        return sum(1 for r in self.rewards_programs if r.active)

    @property
    def active_campaigns_count(self) -> int:
        return sum(1 for c in self.campaigns if c.active)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "sector": self.sector,
            "location": self.location.to_dict(),
            "rewardsPrograms": [r.to_dict() for r in self.rewards_programs],
            "campaigns": [c.to_dict() for c in self.campaigns],
            "status": self.status.value,
        }
        if self.thumbnail_url:
            result["thumbnailUrl"] = self.thumbnail_url
        if self.created_date:
            result["createdDate"] = _format_datetime(self.created_date)
        if self.distance_from_search is not None:
            result["distanceFromSearch"] = self.distance_from_search
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Business":
        distance = data.get("distanceFromSearch")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            sector=data.get("sector", ""),
            location=BusinessLocation.from_dict(data.get("location") or {}),
            rewards_programs=tuple(
                RewardProgram.from_dict(r) for r in data.get("rewardsPrograms", [])
            ),
            campaigns=tuple(Campaign.from_dict(c) for c in data.get("campaigns", [])),
            status=BusinessStatus(data.get("status", BusinessStatus.ACTIVE.value)),
            thumbnail_url=data.get("thumbnailUrl"),
            created_date=_parse_datetime(data.get("createdDate")),
            distance_from_search=float(distance) if distance is not None else None,
        )


@dataclass(frozen=True)
class SearchResult:
    """A page of businesses returned by a search."""

    results: tuple[Business, ...] = ()
    total_count: int = 0
    page: int | None = None
    has_more: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "results": [b.to_dict() for b in self.results],
            "totalCount": self.total_count,
        }
        if self.page is not None:
            result["page"] = self.page
        if self.has_more is not None:
            result["hasMore"] = self.has_more
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResult":
        results = tuple(Business.from_dict(b) for b in data.get("results", []))
        return cls(
            results=results,
            total_count=int(data.get("totalCount", len(results))),
            page=data.get("page"),
            has_more=data.get("hasMore"),
        )
