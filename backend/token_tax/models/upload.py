"""Upload response models."""
from typing import List, Optional
from pydantic import BaseModel, Field
from token_tax.models.token_tax_rec import TokenTaxRec
from token_tax.services.token_tax_csv import RowError


class ParseResponse(BaseModel):
    """Response model for a parsed CSV upload."""
    filename: Optional[str] = None
    status: str = Field(..., description="success, or partial when rows were rejected")
    record_count: int
    error_count: int
    records: List[TokenTaxRec] = Field(default_factory=list)
    errors: List[RowError] = Field(default_factory=list)
