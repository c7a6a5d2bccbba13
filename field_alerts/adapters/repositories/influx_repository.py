"""
InfluxDB adapter for the field measurement store.
This implements the MeasurementRepository port using InfluxDB.
"""

import asyncio
from typing import List, Dict, Any
from datetime import datetime, timedelta, timezone
import logging
from collections import defaultdict

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.query_api import QueryApi
from influxdb_client.client.write_api import WriteApi, SYNCHRONOUS

from ...core.ports.measurement_repository import MeasurementRepository
from ...core.ports.exceptions import RepositoryError
from ...core.domain.measurement import FieldMeasurement, ensure_utc


NUMERIC_FIELDS = ("soil_moisture", "air_temperature", "precipitation")


class InfluxMeasurementRepository(MeasurementRepository):
    """
    InfluxDB adapter that implements the MeasurementRepository port.
    One point per measurement, tagged by field and measurement id, timestamped at collection time.
    """

    def __init__(self, url: str, token: str, bucket: str, org: str):
        """
        Initialize the InfluxDB repository.

        Args:
            url: InfluxDB server URL (e.g., 'http://localhost:8086')
            token: InfluxDB authentication token
            bucket: Bucket name for data storage
            org: Organization name
        """
        self.url = url
        self.token = token
        self.bucket = bucket
        self.org = org
        self.measurement_name = "field_measurements"
        self.logger = logging.getLogger(__name__)

        # Writes are synchronous so a stored measurement is readable before dispatch
        self.client = InfluxDBClient(url=url, token=token, org=org)
        self.query_api: QueryApi = self.client.query_api()
        self.write_api: WriteApi = self.client.write_api(write_options=SYNCHRONOUS)

    async def add(self, measurement: FieldMeasurement) -> FieldMeasurement:
        try:
            await asyncio.to_thread(
                self.write_api.write, bucket=self.bucket, org=self.org, record=self._to_point(measurement)
            )
        except Exception as e:
            self.logger.error(
                f"Error writing measurement {measurement.id} for field {measurement.field_id}: {e}"
            )
            raise RepositoryError("Failed to write measurement to InfluxDB", e)

        self.logger.info(f"Stored measurement {measurement.id} for field {measurement.field_id}")
        return measurement

    async def get_by_field_and_range(
        self,
        field_id: str,
        start_time: datetime,
        end_time: datetime
    ) -> List[FieldMeasurement]:
        """
        Fetch the measurements of one field within [start_time, end_time].

        Raises:
            RepositoryError: If data access fails
        """
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)

        try:
            flux_query = self._build_range_query(start_time, end_time)
            self.logger.debug(f"Executing Flux query for field {field_id}: {flux_query}")

            result = await asyncio.to_thread(
                self.query_api.query, flux_query, params={"field_id": field_id}
            )
            measurements = self._process_query_results(result)
        except Exception as e:
            self.logger.error(f"Error fetching measurements for field {field_id} from InfluxDB: {e}")
            raise RepositoryError(f"Failed to fetch measurements for field {field_id}", e)

        # Flux stop bound is exclusive; the query overshoots and the upper bound is applied here
        measurements = [m for m in measurements if start_time <= m.collected_at <= end_time]
        self.logger.info(f"Fetched {len(measurements)} measurements for field {field_id}")
        return measurements

    async def health_check(self) -> bool:
        """
        Check if the InfluxDB connection is available and healthy.

        Returns:
            True if healthy, False otherwise
        """
        try:
            health_query = f'''
                from(bucket: "{self.bucket}")
                |> range(start: -1m)
                |> limit(n: 1)
            '''
            await asyncio.to_thread(self.query_api.query, health_query)
            return True

        except Exception as e:
            self.logger.warning(f"InfluxDB health check failed: {e}")
            return False

    def close(self):
        """Close the InfluxDB client connection."""
        if self.client:
            self.client.close()
            self.logger.info("InfluxDB client connection closed")

    def _to_point(self, measurement: FieldMeasurement) -> Point:
        point = (
            Point(self.measurement_name)
            .tag("field_id", measurement.field_id)
            .tag("measurement_id", measurement.id)
            .field("soil_moisture", float(measurement.soil_moisture))
            .field("air_temperature", float(measurement.air_temperature))
            .field("precipitation", float(measurement.precipitation))
            .field("received_at", measurement.received_at.isoformat())
            .time(measurement.collected_at, WritePrecision.NS)
        )
        if measurement.user_id:
            point = point.field("user_id", measurement.user_id)
        if measurement.alert_email_to:
            point = point.field("alert_email_to", measurement.alert_email_to)
        return point

    def _build_range_query(self, start_time: datetime, end_time: datetime) -> str:
        """
        Build a Flux query over a closed time range.
        The field id is bound as the query parameter `params.field_id`.
        """
        query_parts = []

        query_parts.append(f'from(bucket: "{self.bucket}")')
        query_parts.append(
            f'|> range(start: {self._format_datetime_for_flux(start_time)}, '
            f'stop: {self._format_datetime_for_flux(end_time + timedelta(seconds=1))})'
        )
        query_parts.append(f'|> filter(fn: (r) => r["_measurement"] == "{self.measurement_name}")')
        query_parts.append('|> filter(fn: (r) => r["field_id"] == params.field_id)')
        query_parts.append('|> sort(columns: ["_time"])')

        return " ".join(query_parts)

    def _process_query_results(self, result) -> List[FieldMeasurement]:
        """
        Process InfluxDB query results into FieldMeasurement domain objects.

        Records arrive one per field value; they are regrouped by measurement id.
        """
        measurement_groups: Dict[str, Dict[str, Any]] = defaultdict(dict)

        for table in result:
            for record in table.records:
                measurement_id = record.values.get("measurement_id")
                field_id = record.values.get("field_id")
                timestamp = record.get_time()

                if not measurement_id or not field_id or not timestamp:
                    continue

                field = record.get_field()
                value = record.get_value()
                if not field or value is None:
                    continue

                if measurement_id not in measurement_groups:
                    measurement_groups[measurement_id] = {
                        "field_id": field_id,
                        "timestamp": timestamp,
                        "fields": {}
                    }
                measurement_groups[measurement_id]["fields"][field] = value

        measurements = []
        for measurement_id, group_data in measurement_groups.items():
            fields = group_data["fields"]
            if any(name not in fields for name in NUMERIC_FIELDS):
                self.logger.warning(f"Skipping incomplete measurement {measurement_id}")
                continue

            received_at = fields.get("received_at")
            measurements.append(
                FieldMeasurement(
                    id=measurement_id,
                    field_id=group_data["field_id"],
                    soil_moisture=float(fields["soil_moisture"]),
                    air_temperature=float(fields["air_temperature"]),
                    precipitation=float(fields["precipitation"]),
                    collected_at=group_data["timestamp"],
                    received_at=datetime.fromisoformat(received_at) if received_at else group_data["timestamp"],
                    user_id=fields.get("user_id"),
                    alert_email_to=fields.get("alert_email_to")
                )
            )

        measurements.sort(key=lambda m: m.collected_at)
        return measurements

    def _format_datetime_for_flux(self, dt: datetime) -> str:
        """Format a datetime as RFC3339 UTC for Flux queries."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)

        return dt.isoformat().replace('+00:00', 'Z')
