"""TokenTax CSV transaction records."""
from token_tax.models.token_tax_rec import CSV_COLUMNS, GroupType, TokenTaxRec, TokenTaxRecType

__all__ = ["CSV_COLUMNS", "GroupType", "TokenTaxRec", "TokenTaxRecType"]
