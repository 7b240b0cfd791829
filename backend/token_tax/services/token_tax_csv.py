"""TokenTax CSV adapter."""
import csv
from io import StringIO
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union
from pydantic import BaseModel, Field
from token_tax.models.token_tax_rec import CSV_COLUMNS, TokenTaxRec
from token_tax.utils.errors import CsvFormatError, DecodeError, RowLimitError
from token_tax.utils.logging_setup import get_logger

logger = get_logger(__name__)


class RowError(BaseModel):
    """A data row that could not be decoded."""
    line: int = Field(..., description="Line number of the row in the CSV document")
    field: Optional[str] = Field(None, description="Column that failed to decode")
    value: Optional[str] = Field(None, description="Raw cell value")
    message: str = Field(..., description="Reason the row was rejected")

    @classmethod
    def from_decode_error(cls, error: DecodeError) -> "RowError":
        return cls(line=error.line, field=error.field, value=error.value, message=str(error))


class CsvParseResult(BaseModel):
    """Records decoded from one CSV document, plus rejected rows."""
    records: List[TokenTaxRec] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class TokenTaxCsvAdapter:
    """Reads and writes the TokenTax CSV format."""

    def parse_csv(self, csv_content: str, max_rows: Optional[int] = None) -> CsvParseResult:
        """
        Parse a TokenTax CSV document.

        Rows that fail to decode are collected in ``errors`` and do not stop
        the remaining rows from being read.

        Raises:
            CsvFormatError: If the header is missing or not the TokenTax header
            RowLimitError: As soon as more than ``max_rows`` data rows are seen
        """
        result = CsvParseResult()
        for line, outcome in self._decode_rows(csv_content, max_rows):
            if isinstance(outcome, DecodeError):
                logger.warning("Skipping TokenTax CSV row: %s", outcome)
                result.errors.append(RowError.from_decode_error(outcome))
            else:
                result.records.append(outcome)

        logger.info(
            "Parsed %d TokenTax records (%d rejected rows)",
            len(result.records),
            len(result.errors)
        )
        return result

    def read_records(self, csv_content: str, max_rows: Optional[int] = None) -> List[TokenTaxRec]:
        """
        Parse a TokenTax CSV document, failing on the first bad row.

        Raises:
            CsvFormatError: If the header is missing or not the TokenTax header
            DecodeError: For the first row that cannot be decoded
            RowLimitError: As soon as more than ``max_rows`` data rows are seen
        """
        records = []
        for _, outcome in self._decode_rows(csv_content, max_rows):
            if isinstance(outcome, DecodeError):
                raise outcome
            records.append(outcome)
        return records

    def write_csv(self, records: Iterable[TokenTaxRec]) -> str:
        """Render records as a TokenTax CSV document, header included."""
        output = StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for record in records:
            writer.writerow(record.to_csv_row())
        return output.getvalue()

    def get_supported_csv_formats(self) -> List[str]:
        """Return supported CSV format versions."""
        return ["tokentax"]

    def _decode_rows(
        self,
        csv_content: str,
        max_rows: Optional[int] = None
    ) -> Iterator[Tuple[int, Union[TokenTaxRec, DecodeError]]]:
        reader = csv.reader(StringIO(csv_content))
        header = self._read_header(reader)

        count = 0
        for cells in reader:
            if not cells:
                continue
            line = reader.line_num
            count += 1
            if max_rows is not None and count > max_rows:
                raise RowLimitError(f"line {line}: more than {max_rows} data rows")
            if len(cells) != len(header):
                yield line, DecodeError(
                    None,
                    None,
                    f"expected {len(header)} fields, found {len(cells)}",
                    line=line
                )
                continue
            row: Dict[str, str] = dict(zip(header, cells))
            try:
                yield line, TokenTaxRec.from_csv_row(row)
            except DecodeError as e:
                yield line, e.at_line(line)

    def _read_header(self, reader) -> List[str]:
        for cells in reader:
            if not cells:
                continue
            if tuple(cells) != CSV_COLUMNS:
                raise CsvFormatError(
                    f"Unexpected TokenTax CSV header {cells!r}, expected {list(CSV_COLUMNS)!r}"
                )
            return cells
        raise CsvFormatError("TokenTax CSV document has no header row")
