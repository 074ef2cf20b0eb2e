"""Indian document formats and per-step checks for the onboarding form.

Step payloads are kept as the camelCase documents the form posts; each
checker returns the normalized payload to store or raises ValidationError.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List

from ..common.datetime_utils import now_local
from ..core.exceptions import ValidationError
from .model import OnboardingStep

PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
AADHAAR_RE = re.compile(r"^\d{12}$")
IFSC_RE = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^\d{6}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_SEPARATORS = re.compile(r"[\s-]")


def format_pan(value: str) -> str:
    return _SEPARATORS.sub("", value).upper()


def format_aadhaar(value: str) -> str:
    return _SEPARATORS.sub("", value)


def format_ifsc(value: str) -> str:
    return _SEPARATORS.sub("", value).upper()


def is_valid_pan(value: str) -> bool:
    return bool(value) and PAN_RE.match(value.upper()) is not None


def is_valid_aadhaar(value: str) -> bool:
    return bool(value) and AADHAAR_RE.match(format_aadhaar(value)) is not None


def is_valid_ifsc(value: str) -> bool:
    return bool(value) and IFSC_RE.match(value.upper()) is not None


def is_valid_mobile(value: str) -> bool:
    if not value:
        return False
    cleaned = re.sub(r"[\s\-+]", "", value)
    if cleaned.startswith("91") and len(cleaned) == 12:
        cleaned = cleaned[2:]
    return MOBILE_RE.match(cleaned) is not None


def is_valid_pincode(value: str) -> bool:
    return bool(value) and PINCODE_RE.match(str(value)) is not None


def _require(data: Dict[str, Any], keys: List[str], message: str) -> None:
    if any(data.get(k) in (None, "") for k in keys):
        raise ValidationError(message)


def _address(data: Any, label: str) -> dict:
    if not isinstance(data, dict):
        raise ValidationError(f"{label} is required")
    _require(data, ["line1", "city", "state", "pincode"], f"All {label.lower()} fields (line1, city, state, pincode) are required")
    if not is_valid_pincode(data["pincode"]):
        raise ValidationError(f"Invalid pincode in {label.lower()}")
    return {**data, "country": data.get("country") or "India"}


def _personal(data: dict) -> dict:
    _require(
        data,
        ["fullName", "dateOfBirth", "gender", "maritalStatus", "nationality", "personalEmail", "mobileNumber"],
        "All personal details fields are required",
    )
    if not EMAIL_RE.match(data["personalEmail"]):
        raise ValidationError("Invalid email address")
    if not is_valid_mobile(data["mobileNumber"]):
        raise ValidationError("Invalid mobile number")
    return data


def _address_details(data: dict) -> dict:
    current = _address(data.get("currentAddress"), "Current address")
    same = bool(data.get("sameAsCurrent"))
    permanent = dict(current) if same else _address(data.get("permanentAddress"), "Permanent address")
    return {"currentAddress": current, "permanentAddress": permanent, "sameAsCurrent": same}


def _identity(data: dict) -> dict:
    data = dict(data)
    if data.get("panNumber"):
        if not is_valid_pan(format_pan(data["panNumber"])):
            raise ValidationError("Invalid PAN number format")
        data["panNumber"] = format_pan(data["panNumber"])
    if data.get("aadhaarNumber"):
        if not is_valid_aadhaar(data["aadhaarNumber"]):
            raise ValidationError("Invalid Aadhaar number format")
        data["aadhaarNumber"] = format_aadhaar(data["aadhaarNumber"])
    return data


def _employment(data: dict) -> dict:
    _require(
        data,
        ["dateOfJoining", "employmentType", "department", "designation", "workLocation"],
        "All employment details fields are required",
    )
    return data


def _compensation(data: dict) -> dict:
    _require(
        data,
        ["annualCTC", "basicSalary", "bankName", "accountNumber", "ifscCode"],
        "All compensation and payroll fields are required",
    )
    ifsc = format_ifsc(data["ifscCode"])
    if not is_valid_ifsc(ifsc):
        raise ValidationError("Invalid IFSC code format")
    return {
        **data,
        "ifscCode": ifsc,
        "payFrequency": data.get("payFrequency") or "monthly",
        "pfApplicable": data.get("pfApplicable", True),
        "esiApplicable": data.get("esiApplicable", False),
        "hra": data.get("hra") or 0,
        "allowances": data.get("allowances") or 0,
    }


def _education(data: Any) -> list:
    entries = data if isinstance(data, list) else []
    if not entries:
        raise ValidationError("At least one education detail is required")
    for i, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict) or any(not entry.get(k) for k in ("qualification", "degree", "institution", "yearOfPassing")):
            raise ValidationError(
                f"Education entry {i}: All fields (qualification, degree, institution, year of passing) are required"
            )
    return entries


def _previous_employment(data: Any) -> list:
    entries = data if isinstance(data, list) else []
    for entry in entries:
        if not isinstance(entry, dict) or any(not entry.get(k) for k in ("companyName", "designation", "startDate", "endDate")):
            raise ValidationError("All previous employment fields are required")
    return entries


def _emergency(data: dict) -> dict:
    _require(data, ["name", "relationship", "mobileNumber"], "All emergency contact fields are required")
    if not is_valid_mobile(data["mobileNumber"]):
        raise ValidationError("Invalid emergency contact mobile number")
    return data


_DECLARATIONS = ("offerLetterAccepted", "ndaSigned", "codeOfConductAccepted", "poshPolicyAcknowledged", "dataPrivacyConsent")


def _policies(data: dict) -> dict:
    if not all(data.get(k) for k in _DECLARATIONS):
        raise ValidationError("All policies and declarations must be accepted")
    now = now_local()
    return {**data, **{f"{k}At": now for k in _DECLARATIONS}}


_CHECKS: Dict[OnboardingStep, Callable[[Any], Any]] = {
    OnboardingStep.PERSONAL_DETAILS: _personal,
    OnboardingStep.ADDRESS_DETAILS: _address_details,
    OnboardingStep.IDENTITY_KYC: _identity,
    OnboardingStep.EMPLOYMENT_DETAILS: _employment,
    OnboardingStep.COMPENSATION_PAYROLL: _compensation,
    OnboardingStep.STATUTORY_TAX: lambda data: data or {},
    OnboardingStep.EDUCATION_DETAILS: _education,
    OnboardingStep.PREVIOUS_EMPLOYMENT: _previous_employment,
    OnboardingStep.EMERGENCY_CONTACT: _emergency,
    OnboardingStep.POLICIES_DECLARATIONS: _policies,
}

_LIST_STEPS = (OnboardingStep.EDUCATION_DETAILS, OnboardingStep.PREVIOUS_EMPLOYMENT)


def validate_step(step: OnboardingStep, data: Any) -> Any:
    if step not in _LIST_STEPS:
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid data for step {step.value}")
    return _CHECKS[step](data)
