from __future__ import annotations

from typing import Any, Dict

import pandas as pd
from loguru import logger

from .base import Dataset, SearchResults
from .resolver import LongRunningResolver
from .transport import TransportClient

VIEWS_PATH = "views"
SEARCH_PATH = "search/views"
API_RECORD_KEYS = ("records", "data", "rows")


def _ignore_body(_: Any) -> None:
    return None


class ViewsClient:
    def __init__(self, transport: TransportClient, resolver: LongRunningResolver) -> None:
        self.transport = transport
        self.resolver = resolver
        self.views_url = f"{transport.settings.base_url}/{VIEWS_PATH}"

    def _view_url(self, dataset_id: str) -> str:
        return f"{self.views_url}/{dataset_id}"

    def create_view(self, dataset: Dataset) -> Dataset:
        """Create an empty, unpublished dataset. ``dataset.id`` should not be set."""
        outcome = self.transport.post_json(self.views_url, dataset.to_json(), Dataset.from_json)
        created = self.resolver.settle(outcome, Dataset.from_json)
        logger.info("Created view", datasetId=created.id, name=created.name)
        return created

    def load_view(self, dataset_id: str) -> Dataset:
        outcome = self.transport.get(self._view_url(dataset_id), Dataset.from_json)
        return self.resolver.settle(outcome, Dataset.from_json)

    def update_view(self, dataset: Dataset) -> Dataset:
        if not dataset.id:
            raise ValueError("cannot update a view without an id")
        outcome = self.transport.put_json(self._view_url(dataset.id), dataset.to_json(), Dataset.from_json)
        return self.resolver.settle(outcome, Dataset.from_json)

    def delete_view(self, dataset_id: str) -> None:
        outcome = self.transport.delete(self._view_url(dataset_id), _ignore_body)
        self.resolver.settle(outcome, _ignore_body)
        logger.info("Deleted view", datasetId=dataset_id)

    def search(self, **filters: Any) -> SearchResults:
        params = {key: value for key, value in filters.items() if value is not None}
        url = f"{self.transport.settings.base_url}/{SEARCH_PATH}"
        outcome = self.transport.get(url, SearchResults.from_json, params=params)
        return self.resolver.settle(outcome, SearchResults.from_json)

    def query(self, dataset_id: str, soql: Dict[str, Any] | None = None) -> pd.DataFrame:
        """Fetch rows of a published dataset as a DataFrame.

        ``soql`` carries SoQL clauses such as ``{"$where": "year > 2010", "$limit": 100}``.
        """
        url = f"{self.transport.settings.root_url}/resource/{dataset_id}.json"
        outcome = self.transport.get(url, _parse_records, params=soql or None)
        return self.resolver.settle(outcome, _parse_records)


def _parse_records(payload: Any) -> pd.DataFrame:
    if payload is None:
        return pd.DataFrame()
    if isinstance(payload, list):
        return pd.DataFrame(payload)
    if isinstance(payload, dict):
        for key in API_RECORD_KEYS:
            if isinstance(payload.get(key), list):
                return pd.DataFrame(payload[key])
    raise ValueError("Unexpected row payload shape.")
