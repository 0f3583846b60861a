"""
Per-type defaults used when reviewing a document.

  default_expiry_months(type)  - validity period applied on approval
  default_expiry_date(type)    - approval time + that period
  document_category(type)      - dashboard grouping of a type
"""

from calendar import monthrange
from datetime import datetime, timezone

from fleetdocs.core.config import settings

# Months of validity granted on approval when the reviewer sets no date
EXPIRY_PERIOD_MONTHS: dict[str, int] = {
    # Driver documents
    "driving_license": 120,
    "insurance": 12,
    "pco_license": 36,
    "proof_of_address": 6,
    "vehicle_registration": 12,
    "mot_certificate": 12,
    # Partner documents
    "business_license": 12,
    "businessLicense": 12,
    "insuranceCertificate": 12,
    "operator_license": 60,
    "operatorLicense": 60,
    "tax_certificate": 12,
    "taxCertificate": 12,
}

_CATEGORIES: dict[str, str] = {
    "tax_certificate": "business",
    "taxCertificate": "business",
    "business_license": "business",
    "businessLicense": "business",
    "operator_license": "business",
    "operatorLicense": "business",
    "insurance_certificate": "insurance",
    "insuranceCertificate": "insurance",
    "vehicle_registration": "vehicle",
    "mot_certificate": "vehicle",
    "driving_license": "driver",
    "pco_license": "driver",
    "proof_of_address": "driver",
    "passport": "driver",
    "national_insurance": "driver",
    "right_to_work": "driver",
    "compliance_certificate": "compliance",
    "safety_certificate": "compliance",
}


def default_expiry_months(document_type: str) -> int:
    return EXPIRY_PERIOD_MONTHS.get(document_type, settings.default_expiry_months)


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    index = moment.month - 1 + months
    year, month = moment.year + index // 12, index % 12 + 1
    _, last_day = monthrange(year, month)
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def default_expiry_date(document_type: str, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return add_months(now, default_expiry_months(document_type))


def document_category(document_type: str | None) -> str:
    return _CATEGORIES.get(document_type or "", "other")
