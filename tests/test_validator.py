from datetime import date
from decimal import Decimal

from receipt_engine.extraction import ExtractedFields, LineItem, TaxEntry, TransactionType
from receipt_engine.postprocessor import Validator


def verdict(validator, **values):
    fields = ExtractedFields(**values)
    (result,) = validator.validate(fields)
    return result


def test_non_positive_amount_is_invalid_with_suggestion():
    validator = Validator()
    for amount in (Decimal("0.00"), Decimal("-5.00")):
        result = verdict(validator, amount=amount)
        assert not result.is_valid
        assert result.correction_suggestions


def test_plausible_amount_is_valid():
    result = verdict(Validator(), amount=Decimal("450.50"))
    assert result.is_valid
    assert result.confidence >= 0.6


def test_amount_above_ceiling():
    result = verdict(Validator(max_amount=Decimal("1000")), amount=Decimal("5000.00"))
    assert not result.is_valid


def test_repeated_digit_amount_is_flagged():
    result = verdict(Validator(), amount=Decimal("9999.00"))
    assert result.is_valid
    assert result.correction_suggestions


def test_date_range():
    validator = Validator(today=date(2024, 6, 1))
    assert verdict(validator, date="2024-05-31").is_valid
    assert not verdict(validator, date="1999-12-31").is_valid
    assert not verdict(validator, date="2024-02-30").is_valid


def test_future_date_lowers_confidence():
    validator = Validator(today=date(2024, 1, 1))
    near = verdict(validator, date="2024-01-10")
    far = verdict(validator, date="2024-06-01")
    assert far.is_valid
    assert far.correction_suggestions
    assert far.confidence < near.confidence


def test_merchant_length():
    validator = Validator()
    assert verdict(validator, merchant="Dominos").is_valid
    assert not verdict(validator, merchant="AB").is_valid


def test_unknown_category_is_invalid():
    validator = Validator()
    assert verdict(validator, category="Food & Dining").is_valid
    assert not verdict(validator, category="Spaceships").is_valid


def test_defaulted_fields_get_low_confidence():
    fields = ExtractedFields(
        category="Other",
        transaction_type=TransactionType.EXPENSE,
        defaulted=frozenset({"category", "transaction_type"}),
    )
    verdicts = Validator(defaulted_confidence=0.3).validate(fields)
    assert [v.field for v in verdicts] == ["category", "transaction_type"]
    assert all(v.is_valid and v.confidence == 0.3 for v in verdicts)


def test_transaction_type_must_be_enum_member():
    validator = Validator()
    assert verdict(validator, transaction_type=TransactionType.INCOME).is_valid
    assert not verdict(validator, transaction_type="salary").is_valid


def test_transaction_id_shape():
    validator = Validator()
    known = verdict(validator, transaction_id="412345678901")
    plain = verdict(validator, transaction_id="ABC-123-XYZ")
    assert known.is_valid and plain.is_valid
    assert known.confidence > plain.confidence
    assert not verdict(validator, transaction_id="12 34").is_valid


def test_line_items_exceeding_total_get_suggestion():
    items = [LineItem("Pizza", Decimal("400.00")), LineItem("Bread", Decimal("150.00"))]
    fields = ExtractedFields(amount=Decimal("472.50"), line_items=items)
    by_field = {v.field: v for v in Validator().validate(fields)}
    assert by_field["line_items"].is_valid
    assert by_field["line_items"].correction_suggestions


def test_tax_rates_and_amounts():
    validator = Validator()
    good = [TaxEntry("CGST", Decimal("2.5"), Decimal("11.25"))]
    bad = [TaxEntry("GST", Decimal("150"), Decimal("11.25"))]
    assert verdict(validator, taxes=good).is_valid
    assert not verdict(validator, taxes=bad).is_valid


def test_only_populated_fields_get_verdicts():
    fields = ExtractedFields(amount=Decimal("10.00"), currency="INR")
    assert [v.field for v in Validator().validate(fields)] == ["amount", "currency"]


def test_validator_error_becomes_invalid_verdict():
    class BrokenValidator(Validator):
        def _check_amount(self, amount, fields):
            raise RuntimeError("boom")

    result = verdict(BrokenValidator(), amount=Decimal("10.00"))
    assert not result.is_valid
    assert result.confidence == 0.0
    assert "boom" in result.rationale


def test_validation_does_not_mutate_fields():
    fields = ExtractedFields(amount=Decimal("0.00"), merchant="AB")
    before = fields.to_dict()
    Validator().validate(fields)
    assert fields.to_dict() == before
