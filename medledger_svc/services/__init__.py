"""
Service layer for business logic.

This module contains all business logic and orchestration services.

Note: Services that wrap external providers are not re-exported here so
their client libraries load only when used. Import them directly:
- from services.advisor_service import AdvisorService
- from services.digilocker_service import DigiLockerService
- from services.sms_service import SmsService
"""
from services.analytics import AnalyticsService
from services.otp_service import OtpIssueResult, OtpService

__all__ = [
    "AnalyticsService",
    "OtpIssueResult",
    "OtpService",
]
