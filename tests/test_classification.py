from receipt_engine.extraction import TransactionType, classify_category, classify_transaction_type
from receipt_engine.extraction.classification import build_category_table, score_categories


def test_merchant_name_drives_category():
    assert classify_category("", merchant="Dominos Pizza") == "Food & Dining"


def test_body_keywords():
    assert classify_category("Uber trip receipt\nTotal 230") == "Transportation"
    assert classify_category("Apollo Pharmacy\nParacetamol 30.00") == "Healthcare"


def test_keywords_match_whole_words_only():
    assert classify_category("Olam exports\nbusiness invoice") is None


def test_no_keyword_leaves_category_unset():
    assert classify_category("Payment of Rs 500") is None


def test_merchant_match_counts_double():
    scores = dict(score_categories("pizza", merchant="pizza"))
    assert scores["Food & Dining"] == 3 * len("pizza")


def test_extra_categories_from_config_table():
    table = build_category_table({"Pets": ["Petco", "vet"]})
    assert classify_category("petco purchase", table=table) == "Pets"
    assert "vet" in table["Pets"]


def test_refund_is_income():
    assert classify_transaction_type("Refund processed for order 123") == TransactionType.INCOME
    assert classify_transaction_type("Rs 500 credited to your account") == TransactionType.INCOME


def test_default_is_expense():
    assert classify_transaction_type("Paid Rs 450 at Dominos") == TransactionType.EXPENSE


def test_credit_card_is_not_income():
    assert classify_transaction_type("Paid using Credit Card") == TransactionType.EXPENSE
