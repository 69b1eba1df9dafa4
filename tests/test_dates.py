from receipt_engine.extraction import DateNormalizer, extract_date


def test_labeled_numeric_date():
    assert extract_date("Date: 15/01/2024") == "2024-01-15"


def test_impossible_date_is_absent():
    assert extract_date("32/13/2024") is None
    assert extract_date("Date: 32/13/2024") is None


def test_ambiguous_date_follows_configured_order():
    assert extract_date("Invoice Date: 03/04/2024", day_first=True) == "2024-04-03"
    assert extract_date("Invoice Date: 03/04/2024", day_first=False) == "2024-03-04"


def test_falls_back_to_other_order_when_needed():
    assert extract_date("02/13/2024", day_first=True) == "2024-02-13"


def test_iso_and_month_name_dates():
    assert extract_date("Printed 2024-01-15 10:32") == "2024-01-15"
    assert extract_date("15th Jan 2024") == "2024-01-15"
    assert extract_date("January 15, 2024") == "2024-01-15"


def test_two_digit_year():
    assert extract_date("Date: 15-01-24") == "2024-01-15"


def test_label_wins_over_earlier_unlabeled_date():
    text = "Valid till 31/12/2025\nBill Date: 05/01/2024"
    assert extract_date(text) == "2024-01-05"


def test_no_date():
    assert extract_date("Total 450.00") is None


def test_parse_iso_is_strict():
    assert DateNormalizer.parse_iso("2024-02-30") is None
    assert DateNormalizer.parse_iso("15/01/2024") is None
    assert DateNormalizer.parse_iso("2024-02-29").day == 29
