from decimal import Decimal

import pytest

from receipt_engine.extraction import AmountNormalizer, extract_amount, extract_currency, rank_amount_candidates


def test_grand_total_outranks_subtotal():
    text = "Subtotal: 1,100.00\nGST: 55.00\nGrand Total: 1,155.00"
    assert extract_amount(text) == Decimal("1155.00")


def test_subtotal_does_not_earn_total_bonus():
    ranked = rank_amount_candidates("Subtotal: 450.00\nTotal: 472.50")
    assert ranked[0].value == Decimal("472.50")
    subtotal = [c for c in ranked if c.value == Decimal("450.00")]
    assert all(c.confidence < ranked[0].confidence for c in subtotal)


def test_paid_amount_outranks_bare_number():
    assert extract_amount("500\nPaid Rs 450") == Decimal("450.00")


def test_first_number_is_not_the_default():
    assert extract_amount("Table 7\nItems 3\nTotal: Rs 890") == Decimal("890.00")


def test_near_tie_prefers_larger_amount():
    assert extract_amount("Total: 100.00\nTotal: 120.00") == Decimal("120.00")


def test_reference_numbers_above_ceiling_are_ignored():
    assert extract_amount("Ref 98765432101\nAmount: 250") == Decimal("250.00")


def test_no_amount():
    assert extract_amount("Thank you for shopping") is None
    assert extract_amount("") is None


def test_normalizer_formats():
    normalizer = AmountNormalizer()
    assert normalizer.normalize("₹1,250.75") == Decimal("1250.75")
    assert normalizer.normalize("1,23,456") == Decimal("123456.00")
    assert normalizer.normalize("€ 1.234,56") == Decimal("1234.56")
    assert normalizer.normalize("Rs. 500/-") == Decimal("500.00")
    assert normalizer.normalize("abc") is None


def test_currency_first_marker_wins():
    assert extract_currency("Total: ₹ 450") == "INR"
    assert extract_currency("Total $12.00 (approx Rs 990)") == "USD"
    assert extract_currency("Total 12.00") is None


def test_grand_total_with_rupee_symbol_outranks_subtotal():
    assert extract_amount("Grand Total: ₹1,250.75\nSubtotal: ₹999.00") == Decimal("1250.75")


def test_paid_rs_outranks_the_same_bare_number():
    ranked = rank_amount_candidates("500\nPaid Rs 500")
    assert ranked[0].rule == "payment_verb"
    assert ranked[0].value == Decimal("500.00")
    bare = [c for c in ranked if c.position == 0]
    assert bare and all(c.confidence < ranked[0].confidence for c in bare)


@pytest.mark.parametrize("text, expected", [
    ("Grand Total: Rs.472.50", Decimal("472.50")),
    ("Paid Rs.500", Decimal("500.00")),
    ("Total Rs.1,250.00", Decimal("1250.00")),
    ("Amount: INR.899", Decimal("899.00")),
])
def test_dotted_currency_prefix(text, expected):
    assert extract_amount(text) == expected


def test_decimal_fraction_is_not_a_separate_candidate():
    values = {c.value for c in rank_amount_candidates("Total: 472.50")}
    assert values == {Decimal("472.50")}


@pytest.mark.parametrize("text, expected", [
    ("Total Items: 12\nAmount Due: 450.00", Decimal("450.00")),
    ("Total GST: 22.50\nNet Amount: 472.50", Decimal("472.50")),
    ("Total Qty 3\nTotal Discount 40.00\nTotal 360.00", Decimal("360.00")),
    ("Total Savings: 75.00\nBalance Due: 310.00", Decimal("310.00")),
])
def test_qualified_totals_do_not_beat_the_payable(text, expected):
    assert extract_amount(text) == expected


def test_payable_phrases_earn_the_total_bonus():
    due = rank_amount_candidates("Amount Due: 450.00")[0]
    plain = rank_amount_candidates("Amount: 450.00")[0]
    assert due.confidence > plain.confidence
