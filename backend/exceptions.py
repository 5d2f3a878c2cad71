# exceptions.py - Playbook mutation error taxonomy with PB-DOMAIN-NUMBER codes
from typing import Optional


# ============================================================
# ERROR CODE CATALOGUE
# PB-{DOMAIN}-{NUMBER}
# Domains: DB, STATE, AUTH, FIELD, LIC
# ============================================================

ERROR_CATALOGUE = {
    "PB-DB-001": {"message": "Record not found", "severity": "info", "http_status": 404},
    "PB-DB-002": {"message": "Persistence failure", "severity": "error", "http_status": 500},
    "PB-STATE-001": {"message": "Archived playbooks can not be modified", "severity": "warning", "http_status": 409},
    "PB-AUTH-001": {"message": "Insufficient permissions", "severity": "warning", "http_status": 403},
    "PB-FIELD-001": {"message": "Invalid field value", "severity": "warning", "http_status": 400},
    "PB-LIC-001": {"message": "Feature not available with the current license", "severity": "warning", "http_status": 403},
}


class PlaybookError(Exception):
    """Base class for every failure surfaced by the mutation layer."""

    code = "PB-DB-002"

    def __init__(self, message: Optional[str] = None):
        self.message = message or ERROR_CATALOGUE[self.code]["message"]
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return ERROR_CATALOGUE[self.code]["http_status"]

    @property
    def severity(self) -> str:
        return ERROR_CATALOGUE[self.code]["severity"]

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFoundError(PlaybookError):
    code = "PB-DB-001"


class StoreError(PlaybookError):
    code = "PB-DB-002"


class ArchivedError(PlaybookError):
    code = "PB-STATE-001"


class PermissionDeniedError(PlaybookError):
    code = "PB-AUTH-001"

    def __init__(self, message: Optional[str] = None, capability: Optional[str] = None):
        self.capability = capability
        super().__init__(message)


class FieldValidationError(PlaybookError):
    code = "PB-FIELD-001"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class LicenseRestrictedError(PlaybookError):
    code = "PB-LIC-001"

