"""Record normalization service."""
from typing import List
from token_tax.models.token_tax_rec import TokenTaxRec
from token_tax.utils.logging_setup import get_logger
from token_tax.utils.time_ms import time_ms_to_datetime

logger = get_logger(__name__)


class RecordNormalizer:
    """Service for normalizing records from multiple CSV files."""

    def normalize(self, records: List[TokenTaxRec]) -> List[TokenTaxRec]:
        """
        Sort records and remove exact duplicates.

        Records sort chronologically first; the remaining fields break ties,
        so the result is deterministic regardless of input order.

        Args:
            records: Records from one or more sources

        Returns:
            Sorted list without duplicate records
        """
        if not records:
            return []

        unique_records: List[TokenTaxRec] = []
        for record in sorted(records):
            if unique_records and unique_records[-1] == record:
                logger.debug("Duplicate record dropped: %s", record)
                continue
            unique_records.append(record)

        duplicates = len(records) - len(unique_records)
        if duplicates > 0:
            logger.info("Removed %d duplicate records", duplicates)
        logger.info("Total records: %d, Unique: %d", len(records), len(unique_records))

        return unique_records

    def filter_by_year(self, records: List[TokenTaxRec], year: int) -> List[TokenTaxRec]:
        """
        Filter records by the UTC year of their date.

        Args:
            records: List of records
            year: Year to keep

        Returns:
            Filtered records
        """
        return [record for record in records if time_ms_to_datetime(record.time).year == year]

    def merge_records(self, record_lists: List[List[TokenTaxRec]]) -> List[TokenTaxRec]:
        """
        Merge multiple lists of records into one sorted list.

        Args:
            record_lists: Lists of records from different files

        Returns:
            Merged, sorted and deduplicated list of records
        """
        all_records: List[TokenTaxRec] = []
        for record_list in record_lists:
            all_records.extend(record_list)

        return self.normalize(all_records)
