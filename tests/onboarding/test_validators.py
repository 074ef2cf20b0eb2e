import pytest

from hrms.core.enums import Role
from hrms.core.exceptions import ValidationError
from hrms.onboarding.model import OnboardingStep
from hrms.onboarding.service import infer_role
from hrms.onboarding.validators import (
    format_aadhaar,
    format_ifsc,
    format_pan,
    is_valid_aadhaar,
    is_valid_ifsc,
    is_valid_mobile,
    is_valid_pan,
    is_valid_pincode,
    validate_step,
)


def test_document_formats():
    assert format_pan("abcde 1234-f") == "ABCDE1234F"
    assert is_valid_pan("ABCDE1234F")
    assert not is_valid_pan("ABCD1234F")
    assert format_aadhaar("1234 5678-9012") == "123456789012"
    assert is_valid_aadhaar("1234 5678 9012")
    assert not is_valid_aadhaar("12345678901")
    assert format_ifsc("sbin 0001234") == "SBIN0001234"
    assert is_valid_ifsc("SBIN0001234")
    assert not is_valid_ifsc("SBIN1001234")
    assert is_valid_pincode("411001")
    assert not is_valid_pincode("41100")


@pytest.mark.parametrize("number", ["9876543210", "+91 98765 43210", "919876543210", "98765-43210"])
def test_valid_mobiles(number):
    assert is_valid_mobile(number)


@pytest.mark.parametrize("number", ["", "5876543210", "98765432", "+1 9876543210"])
def test_invalid_mobiles(number):
    assert not is_valid_mobile(number)


def test_identity_step_normalizes_documents():
    stored = validate_step(OnboardingStep.IDENTITY_KYC, {"panNumber": "abcde1234f", "aadhaarNumber": "1234 5678 9012"})
    assert stored == {"panNumber": "ABCDE1234F", "aadhaarNumber": "123456789012"}
    with pytest.raises(ValidationError) as exc:
        validate_step(OnboardingStep.IDENTITY_KYC, {"panNumber": "12345"})
    assert str(exc.value) == "Invalid PAN number format"


def test_address_step_copies_current_address():
    current = {"line1": "12 MG Road", "city": "Pune", "state": "MH", "pincode": "411001"}
    stored = validate_step(OnboardingStep.ADDRESS_DETAILS, {"currentAddress": current, "sameAsCurrent": True})
    assert stored["permanentAddress"] == {**current, "country": "India"}
    with pytest.raises(ValidationError):
        validate_step(OnboardingStep.ADDRESS_DETAILS, {"currentAddress": {**current, "pincode": "41"}})


def test_compensation_defaults():
    stored = validate_step(
        OnboardingStep.COMPENSATION_PAYROLL,
        {"annualCTC": 1200000, "basicSalary": 50000, "bankName": "SBI", "accountNumber": "1", "ifscCode": "sbin0001234"},
    )
    assert stored["ifscCode"] == "SBIN0001234"
    assert stored["payFrequency"] == "monthly"
    assert stored["pfApplicable"] is True


def test_list_and_declaration_steps():
    with pytest.raises(ValidationError) as exc:
        validate_step(OnboardingStep.EDUCATION_DETAILS, [])
    assert str(exc.value) == "At least one education detail is required"
    assert validate_step(OnboardingStep.PREVIOUS_EMPLOYMENT, []) == []
    with pytest.raises(ValidationError) as exc:
        validate_step(OnboardingStep.POLICIES_DECLARATIONS, {"offerLetterAccepted": True})
    assert str(exc.value) == "All policies and declarations must be accepted"
    with pytest.raises(ValidationError):
        validate_step(OnboardingStep.PERSONAL_DETAILS, "not a form")


@pytest.mark.parametrize(
    "designation, role",
    [
        ("System Admin", Role.SUPER_ADMIN),
        ("HR Executive", Role.HR),
        ("Human Resource Partner", Role.HR),
        ("Engineering Manager", Role.MANAGER),
        ("Three-D Artist", Role.EMPLOYEE),
        ("Software Engineer", Role.EMPLOYEE),
        (None, Role.EMPLOYEE),
    ],
)
def test_infer_role(designation, role):
    assert infer_role(designation) == role
