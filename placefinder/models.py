"""Core data models shared by the search and nearby pipelines."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

STORE_SOURCE = "store"
PROVIDER_SOURCE = "provider"

BUSINESS = "business"
BUSINESS_LOCATION_PROPOSAL = "business_location_proposal"


@dataclass(frozen=True, slots=True)
class StoreId:
    """Stable identity of a row in the local restaurants table."""

    uuid: str


@dataclass(frozen=True, slots=True)
class ProviderId:
    """Transient identity of a provider hit, valid for the current cache window."""

    place_id: str


Identity = Union[StoreId, ProviderId]


@dataclass(slots=True)
class PlaceCandidate:
    """Provisional search hit, either from the local store or the places provider."""

    identity: Identity
    name: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    full_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    provider_place_id: Optional[str] = None
    datasource: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def source(self) -> str:
        return STORE_SOURCE if isinstance(self.identity, StoreId) else PROVIDER_SOURCE

    @property
    def id(self) -> str:
        if isinstance(self.identity, StoreId):
            return self.identity.uuid
        return self.identity.place_id

    @property
    def key(self) -> str:
        """Identifier safe to use as a list key when both sources are mixed."""
        if isinstance(self.identity, StoreId):
            return f"db_{self.identity.uuid}"
        return self.identity.place_id

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude

    def address_text(self) -> str:
        """Full address when known, otherwise the street line joined with the city."""
        if self.full_address and self.full_address.strip():
            return self.full_address.strip()
        return ", ".join(part for part in (self.street, self.city) if part)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("identity")
        data["id"] = self.id
        data["source"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaceCandidate":
        payload = dict(data)
        raw_id = str(payload.pop("id"))
        source = payload.pop("source", PROVIDER_SOURCE)
        identity: Identity = StoreId(raw_id) if source == STORE_SOURCE else ProviderId(raw_id)
        payload["raw"] = payload.get("raw") or {}
        return cls(identity=identity, **payload)


@dataclass(slots=True)
class ScoredCandidate:
    """Per-search ranking wrapper; discarded once the list is ordered."""

    candidate: PlaceCandidate
    name_similarity: int
    relevance_score: float


@dataclass(frozen=True, slots=True)
class QueryAnalysis:
    type: str
    business_name: str
    location: Optional[str] = None


@dataclass(slots=True)
class AddressFields:
    full_address: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


@dataclass(slots=True)
class AddressParseResult:
    success: bool
    data: AddressFields
    error: Optional[str] = None


@dataclass(slots=True)
class NearbyCacheEntry:
    results: List[PlaceCandidate]
    timestamp: float
    location: Tuple[float, float]
    radius: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [candidate.to_dict() for candidate in self.results],
            "timestamp": self.timestamp,
            "location": {"latitude": self.location[0], "longitude": self.location[1]},
            "radius": self.radius,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NearbyCacheEntry":
        location = data["location"]
        return cls(
            results=[PlaceCandidate.from_dict(item) for item in data.get("results", [])],
            timestamp=float(data["timestamp"]),
            location=(float(location["latitude"]), float(location["longitude"])),
            radius=float(data["radius"]),
        )
