# licensing.py - License checks for playbook features
import os
from enum import Enum


class LicensePlan(str, Enum):
    FREE = "free"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class LicenseChecker:
    """Answers whether a playbook visibility is allowed under the installed license.

    Private playbooks are a paid feature. Public playbooks are allowed unless
    the deployment turns them off.
    """

    def __init__(self, plan: LicensePlan = LicensePlan.FREE, public_allowed: bool = True):
        self.plan = LicensePlan(plan)
        self.public_allowed = public_allowed

    @classmethod
    def from_env(cls) -> "LicenseChecker":
        plan = os.getenv("PLAYBOOKS_LICENSE_PLAN", LicensePlan.FREE.value).lower()
        try:
            license_plan = LicensePlan(plan)
        except ValueError:
            license_plan = LicensePlan.FREE
        public_allowed = os.getenv("PLAYBOOKS_PUBLIC_ALLOWED", "true").lower() == "true"
        return cls(license_plan, public_allowed)

    def playbook_allowed(self, public: bool) -> bool:
        if public:
            return self.public_allowed
        return self.plan in (LicensePlan.PROFESSIONAL, LicensePlan.ENTERPRISE)


def get_license_checker() -> LicenseChecker:
    """FastAPI dependency"""
    return LicenseChecker.from_env()
