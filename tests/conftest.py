"""
Shared fixtures for the GETS readiness tests.
"""

import pytest


def make_row(index: int = 1, **overrides) -> dict:
    """A flat CSV-style invoice row whose headers all match known aliases."""
    row = {
        "inv_id": f"INV-{index:03d}",
        "issue_date": "2024-01-15",
        "currency": "AED",
        "total_excl_vat": "100.00",
        "vat_amount": "5.00",
        "total_incl_vat": "105.00",
        "seller_name": "Acme Trading LLC",
        "seller_trn": "TRN100200300",
        "seller_country": "AE",
        "seller_city": "Dubai",
        "buyer_name": "Gulf Retail FZE",
        "buyer_trn": "TRN400500600",
        "buyer_country": "AE",
        "buyer_city": "Abu Dhabi",
        "sku": "SKU-1",
        "description": "Widget",
        "qty": "2",
        "unit_price": "50.00",
        "line_total": "100.00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def valid_rows() -> list[dict]:
    """Ten arithmetically consistent rows."""
    return [make_row(i) for i in range(1, 11)]


@pytest.fixture
def rows_without_trn() -> list[dict]:
    """Five JSON-style rows with no TRN columns at all."""
    return [
        {
            "inv_id": f"INV-{i:03d}",
            "issue_date": "2024-03-01",
            "currency": "SAR",
            "total_excl_vat": 200.0,
            "vat_amount": 30.0,
            "total_incl_vat": 230.0,
            "qty": 4,
            "unit_price": 50.0,
            "line_total": 200.0,
        }
        for i in range(1, 6)
    ]
