from dataclasses import dataclass

from soda_import.config import Settings

from .base import (
    AsyncTicket,
    Blueprint,
    BlueprintColumn,
    ColumnGuess,
    Dataset,
    Failed,
    GeocodingStatus,
    Pending,
    PublicationState,
    Ready,
    ScanResult,
    SearchResult,
    SearchResults,
)
from .blueprint import BlueprintBuilder
from .importer import ImportPipeline, generate_translation
from .publication import PublicationGate
from .resolver import UNBOUNDED_ATTEMPTS, LongRunningResolver
from .transport import TransportClient
from .views import ViewsClient


@dataclass(frozen=True)
class SodaClient:
    transport: TransportClient
    resolver: LongRunningResolver
    views: ViewsClient
    importer: ImportPipeline
    publication: PublicationGate


def build_client(settings: Settings) -> SodaClient:
    transport = TransportClient(settings)
    resolver = LongRunningResolver(transport, default_attempts=settings.max_retries)
    return SodaClient(
        transport=transport,
        resolver=resolver,
        views=ViewsClient(transport, resolver),
        importer=ImportPipeline(transport, resolver),
        publication=PublicationGate(transport, resolver, interval=settings.geocoding_interval),
    )


__all__ = [
    "AsyncTicket",
    "Blueprint",
    "BlueprintBuilder",
    "BlueprintColumn",
    "ColumnGuess",
    "Dataset",
    "Failed",
    "GeocodingStatus",
    "ImportPipeline",
    "LongRunningResolver",
    "Pending",
    "PublicationGate",
    "PublicationState",
    "Ready",
    "ScanResult",
    "SearchResult",
    "SearchResults",
    "SodaClient",
    "TransportClient",
    "UNBOUNDED_ATTEMPTS",
    "ViewsClient",
    "build_client",
    "generate_translation",
]
