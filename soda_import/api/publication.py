from __future__ import annotations

import time
from typing import Callable

from loguru import logger

from soda_import.config import DEFAULT_GEOCODING_INTERVAL

from .base import Dataset, GeocodingStatus
from .resolver import LongRunningResolver
from .transport import TransportClient, with_params

GEOCODING_PATH = "geocoding"


class PublicationGate:
    """Publishes datasets once the service has drained their pending geocodes.

    The geocoding wait uses a fixed interval; it does not follow the
    server-suggested delays the resolver uses.
    """

    def __init__(
        self,
        transport: TransportClient,
        resolver: LongRunningResolver,
        interval: float = DEFAULT_GEOCODING_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.resolver = resolver
        self.interval = interval
        self._sleep = sleep
        base_url = transport.settings.base_url
        self.views_url = f"{base_url}/views"
        self.geocoding_url = f"{base_url}/{GEOCODING_PATH}"

    def find_pending_geocoding(self, dataset_id: str) -> GeocodingStatus:
        url = with_params(f"{self.geocoding_url}/{dataset_id}", method="pending")
        outcome = self.transport.get(url, GeocodingStatus.from_json)
        return self.resolver.settle(outcome, GeocodingStatus.from_json)

    def wait_for_pending_geocoding(self, dataset_id: str) -> None:
        status = self.find_pending_geocoding(dataset_id)
        while status.pending_count > 0:
            logger.info("Waiting for geocoding", datasetId=dataset_id, pending=status.pending_count)
            try:
                self._sleep(self.interval)
            except InterruptedError:
                # Best effort: an interrupted wait just means checking again sooner.
                logger.debug("Geocoding wait interrupted", datasetId=dataset_id)
            status = self.find_pending_geocoding(dataset_id)

    def publish(self, dataset_id: str) -> Dataset:
        self.wait_for_pending_geocoding(dataset_id)
        url = f"{self.views_url}/{dataset_id}/publication"
        outcome = self.transport.post_json(url, {"viewId": dataset_id}, Dataset.from_json)
        dataset = self.resolver.settle(outcome, Dataset.from_json)
        logger.info("Published dataset", datasetId=dataset.id, state=dataset.publication_state.value)
        return dataset

    def create_working_copy(self, dataset_id: str) -> Dataset:
        url = with_params(f"{self.views_url}/{dataset_id}/publication", method="copy")
        outcome = self.transport.post_json(url, None, Dataset.from_json)
        copy = self.resolver.settle(outcome, Dataset.from_json)
        logger.info("Created working copy", datasetId=dataset_id, copyId=copy.id)
        return copy
