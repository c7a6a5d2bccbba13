from abc import ABC, abstractmethod
from typing import List
from datetime import datetime

from ..domain.measurement import FieldMeasurement


class MeasurementRepository(ABC):
    """
    Port (interface) for the append-only field measurement store.
    """

    @abstractmethod
    async def add(self, measurement: FieldMeasurement) -> FieldMeasurement:
        """
        Durably store a new measurement.

        Args:
            measurement: Validated measurement to append

        Returns:
            The stored measurement

        Raises:
            RepositoryError: If the write fails
        """
        pass

    @abstractmethod
    async def get_by_field_and_range(
        self,
        field_id: str,
        start_time: datetime,
        end_time: datetime
    ) -> List[FieldMeasurement]:
        """
        Fetch the measurements of one field collected within [start_time, end_time].

        Args:
            field_id: Field identifier
            start_time: Inclusive lower bound on collection time
            end_time: Inclusive upper bound on collection time

        Returns:
            Measurements ordered by collection time ascending

        Raises:
            RepositoryError: If data access fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the data source is available and healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
