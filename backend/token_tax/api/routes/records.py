"""TokenTax record endpoints."""
from typing import List, Optional
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import PlainTextResponse, StreamingResponse
from token_tax.config import settings
from token_tax.models.token_tax_rec import TokenTaxRec
from token_tax.models.upload import ParseResponse
from token_tax.services.export_service import generate_excel_workbook
from token_tax.services.record_normalizer import RecordNormalizer
from token_tax.services.token_tax_csv import TokenTaxCsvAdapter
from token_tax.utils.errors import RowLimitError, TokenTaxError
from token_tax.utils.logging_setup import get_logger

router = APIRouter()
logger = get_logger(__name__)


async def _read_upload(file: UploadFile) -> str:
    content = await file.read()
    try:
        return content.decode(settings.csv_encoding)
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=400,
            detail=f"{file.filename}: file is not {settings.csv_encoding} encoded text: {e}"
        )


def _too_large(filename: Optional[str], error: RowLimitError) -> HTTPException:
    return HTTPException(status_code=413, detail=f"{filename}: {error}")


async def _read_records_strict(file: UploadFile) -> List[TokenTaxRec]:
    csv_content = await _read_upload(file)
    try:
        return TokenTaxCsvAdapter().read_records(csv_content, max_rows=settings.max_records_per_upload)
    except RowLimitError as e:
        raise _too_large(file.filename, e)
    except TokenTaxError as e:
        raise HTTPException(status_code=400, detail=f"{file.filename}: {e}")


@router.post("/upload", response_model=ParseResponse)
async def upload_csv(file: UploadFile = File(...)):
    """
    Upload a TokenTax CSV file.

    Rows that cannot be decoded are reported in ``errors``; the other rows
    are still returned.
    """
    csv_content = await _read_upload(file)
    try:
        result = TokenTaxCsvAdapter().parse_csv(csv_content, max_rows=settings.max_records_per_upload)
    except RowLimitError as e:
        raise _too_large(file.filename, e)
    except TokenTaxError as e:
        raise HTTPException(status_code=400, detail=f"Error parsing CSV: {e}")

    logger.info("Upload %s: %d records, %d errors", file.filename, len(result.records), len(result.errors))

    return ParseResponse(
        filename=file.filename,
        status="success" if result.ok else "partial",
        record_count=len(result.records),
        error_count=len(result.errors),
        records=result.records,
        errors=result.errors
    )


@router.post("/normalize", response_class=PlainTextResponse)
async def normalize_csv(
    files: List[UploadFile] = File(...),
    year: Optional[int] = Query(default=None, description="Only keep records dated in this UTC year")
):
    """
    Merge TokenTax CSV files into one sorted CSV without duplicates.

    Every file must decode completely.
    """
    record_lists = [await _read_records_strict(file) for file in files]

    normalizer = RecordNormalizer()
    records = normalizer.merge_records(record_lists)
    if year is not None:
        records = normalizer.filter_by_year(records, year)

    return PlainTextResponse(
        TokenTaxCsvAdapter().write_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=tokentax-normalized.csv"}
    )


@router.post("/export")
async def export_excel(file: UploadFile = File(...)):
    """Convert a TokenTax CSV file to an Excel workbook."""
    records = RecordNormalizer().normalize(await _read_records_strict(file))
    excel_file = generate_excel_workbook(records)
    return StreamingResponse(
        excel_file,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=tokentax-records.xlsx"}
    )
