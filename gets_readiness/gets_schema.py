"""
GETS v0.1 canonical invoice schema.

The canonical field list and the known source-column aliases for each
field. Both are fixed and loaded once at import time.
"""

from typing import Optional

from .config import ALLOWED_CURRENCIES, FieldCategory, FieldType
from .schemas import CanonicalField


GETS_VERSION = "0.1"

GETS_FIELDS: tuple[CanonicalField, ...] = (
    # Invoice header
    CanonicalField(path="invoice.id", type=FieldType.STRING, required=True, category=FieldCategory.HEADER),
    CanonicalField(
        path="invoice.issue_date",
        type=FieldType.DATE,
        required=True,
        category=FieldCategory.HEADER,
        format="YYYY-MM-DD",
    ),
    CanonicalField(
        path="invoice.currency",
        type=FieldType.ENUM,
        required=True,
        category=FieldCategory.HEADER,
        enum_values=list(ALLOWED_CURRENCIES),
    ),
    CanonicalField(path="invoice.total_excl_vat", type=FieldType.NUMBER, required=True, category=FieldCategory.HEADER),
    CanonicalField(path="invoice.vat_amount", type=FieldType.NUMBER, required=True, category=FieldCategory.HEADER),
    CanonicalField(path="invoice.total_incl_vat", type=FieldType.NUMBER, required=True, category=FieldCategory.HEADER),

    # Seller
    CanonicalField(path="seller.name", type=FieldType.STRING, required=True, category=FieldCategory.SELLER),
    CanonicalField(path="seller.trn", type=FieldType.STRING, required=True, category=FieldCategory.SELLER),
    CanonicalField(
        path="seller.country",
        type=FieldType.STRING,
        required=True,
        category=FieldCategory.SELLER,
        pattern="^[A-Z]{2}$",
    ),
    CanonicalField(path="seller.city", type=FieldType.STRING, required=False, category=FieldCategory.SELLER),

    # Buyer
    CanonicalField(path="buyer.name", type=FieldType.STRING, required=True, category=FieldCategory.BUYER),
    CanonicalField(path="buyer.trn", type=FieldType.STRING, required=True, category=FieldCategory.BUYER),
    CanonicalField(
        path="buyer.country",
        type=FieldType.STRING,
        required=True,
        category=FieldCategory.BUYER,
        pattern="^[A-Z]{2}$",
    ),
    CanonicalField(path="buyer.city", type=FieldType.STRING, required=False, category=FieldCategory.BUYER),

    # Line items
    CanonicalField(path="lines[].sku", type=FieldType.STRING, required=True, category=FieldCategory.LINES),
    CanonicalField(path="lines[].description", type=FieldType.STRING, required=False, category=FieldCategory.LINES),
    CanonicalField(path="lines[].qty", type=FieldType.NUMBER, required=True, category=FieldCategory.LINES),
    CanonicalField(path="lines[].unit_price", type=FieldType.NUMBER, required=True, category=FieldCategory.LINES),
    CanonicalField(path="lines[].line_total", type=FieldType.NUMBER, required=True, category=FieldCategory.LINES),
)

# Common source-column spellings for each canonical field
FIELD_ALIASES: dict[str, list[str]] = {
    "invoice.id": ["inv_id", "invoice_id", "inv_no", "invoice_number", "id", "invoiceId"],
    "invoice.issue_date": ["date", "issue_date", "issued_on", "invoice_date", "issueDate"],
    "invoice.currency": ["currency", "curr", "ccy"],
    "invoice.total_excl_vat": ["total_excl_vat", "totalNet", "net_amount", "subtotal"],
    "invoice.vat_amount": ["vat_amount", "vat", "tax_amount", "tax"],
    "invoice.total_incl_vat": ["total_incl_vat", "grandTotal", "total_amount", "total"],

    "seller.name": ["seller_name", "sellerName", "vendor_name", "supplier_name"],
    "seller.trn": ["seller_trn", "sellerTax", "seller_tax", "vendor_trn"],
    "seller.country": ["seller_country", "sellerCountry", "vendor_country"],
    "seller.city": ["seller_city", "sellerCity", "vendor_city"],

    "buyer.name": ["buyer_name", "buyerName", "customer_name", "client_name"],
    "buyer.trn": ["buyer_trn", "buyerTax", "buyer_tax", "customer_trn"],
    "buyer.country": ["buyer_country", "buyerCountry", "customer_country"],
    "buyer.city": ["buyer_city", "buyerCity", "customer_city"],

    "lines[].sku": ["sku", "lineSku", "item_code", "product_code"],
    "lines[].description": ["description", "lineDesc", "item_description", "product_name"],
    "lines[].qty": ["qty", "lineQty", "quantity", "amount"],
    "lines[].unit_price": ["unit_price", "linePrice", "price", "rate"],
    "lines[].line_total": ["line_total", "lineTotal", "amount", "total"],
}

_FIELDS_BY_PATH: dict[str, CanonicalField] = {f.path: f for f in GETS_FIELDS}


def get_canonical_field(path: str) -> Optional[CanonicalField]:
    """Look up a canonical field by path. Unknown paths return None."""
    return _FIELDS_BY_PATH.get(path)


def get_aliases(path: str) -> list[str]:
    return FIELD_ALIASES.get(path, [])


def get_fields_by_category(category: FieldCategory) -> list[CanonicalField]:
    """Get all canonical fields belonging to a category."""
    return [f for f in GETS_FIELDS if f.category == category]


def get_required_fields() -> list[CanonicalField]:
    return [f for f in GETS_FIELDS if f.required]


def field_leaf_name(path: str) -> str:
    """Last path segment without array markers (``lines[].qty`` -> ``qty``)."""
    return path.split(".")[-1].replace("[]", "")
