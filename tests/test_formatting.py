from decimal import Decimal

from siteledger.services.formatting import format_change, format_money


def test_format_money_keeps_negative_sign():
    assert format_money(Decimal("-1600.45")) == "-$1,600.45"


def test_format_money_signed_profit():
    assert format_money(Decimal("3500"), signed=True) == "+$3,500.00"
    assert format_money(Decimal("0"), signed=True) == "$0.00"


def test_format_change_uses_symbol():
    assert format_change(Decimal("5000"), Decimal("1200"), symbol="€") == "€5,000.00 in / €1,200.00 out"
