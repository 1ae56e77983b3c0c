from campaign_builder.schemas.lead import LeadField
from campaign_builder.services.imports.detector import (
    FIELD_PATTERNS, detect_column, detect_columns, normalize_header, score_header
)


def test_detects_customer_table_columns():
    result = detect_columns(["Customer Name", "Mobile Number", "Email Address"])

    assert result.phone.detected_column == "Mobile Number"
    assert result.phone.confidence >= 0.5
    assert result.name.detected_column == "Customer Name"
    assert result.email.detected_column == "Email Address"
    assert not result.needs_manual_review


def test_detection_is_idempotent():
    headers = ["Phone", "Cell", "Full Name", "E-mail", "Notes"]
    assert detect_columns(headers) == detect_columns(headers)


def test_normalize_header_strips_non_alphanumerics():
    assert normalize_header(" E-Mail_Address! ") == "emailaddress"
    assert normalize_header("Phone #2") == "phone2"


def test_scores_accumulate_across_patterns():
    patterns = FIELD_PATTERNS[LeadField.PHONE]
    assert score_header("phone", patterns) == 12
    assert score_header("Phone Number", patterns) == 10
    assert score_header("Work Number", patterns) == 5
    assert score_header("Tele", patterns) == 2


def test_short_headers_do_not_match_inside_patterns():
    patterns = FIELD_PATTERNS[LeadField.PHONE]
    assert score_header("no", patterns) == 0
    assert score_header("tel", patterns) == 0


def test_alternates_are_ordered_and_capped():
    detection = detect_column(
        ["Phone", "Mobile", "Cell Phone", "Work Number", "Contact Info", "Notes"],
        LeadField.PHONE
    )

    assert detection.detected_column == "Phone"
    assert detection.confidence == 1.0
    assert detection.alternates == ["Mobile", "Cell Phone", "Work Number"]


def test_confidence_is_score_over_ten():
    detection = detect_column(["Tele", "Address"], LeadField.PHONE)
    assert detection.detected_column == "Tele"
    assert detection.confidence == 0.2
    assert detection.alternates == []


def test_no_match_yields_empty_detection():
    result = detect_columns(["City", "Zip", "Notes"])

    for field in LeadField:
        detection = result.for_field(field)
        assert detection.detected_column is None
        assert detection.confidence == 0
        assert detection.alternates == []
    assert result.needs_manual_review
    assert result.suggested_mapping() is None


def test_suggested_mapping_uses_detected_columns():
    mapping = detect_columns(["Name", "Phone"]).suggested_mapping()

    assert mapping.phone_column == "Phone"
    assert mapping.name_column == "Name"
    assert mapping.email_column is None
