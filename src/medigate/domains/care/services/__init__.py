"""Care domain services, one per entity, sharing a single ApiClient."""

from __future__ import annotations

from dataclasses import dataclass

from medigate.core.api.client import ApiClient
from medigate.domains.care.services.appointment import AppointmentService
from medigate.domains.care.services.doctor import DoctorService
from medigate.domains.care.services.emergency import EmergencyService
from medigate.domains.care.services.feedback import FeedbackService
from medigate.domains.care.services.health_record import HealthRecordService
from medigate.domains.care.services.medication import MedicationService
from medigate.domains.care.services.notification import NotificationService
from medigate.domains.care.services.pharmacy import PharmacyService
from medigate.domains.care.services.user import UserService


@dataclass
class CareServices:
    """The service bundle the session aggregator works through."""

    client: ApiClient
    users: UserService
    doctors: DoctorService
    appointments: AppointmentService
    medications: MedicationService
    health_records: HealthRecordService
    notifications: NotificationService
    pharmacies: PharmacyService
    emergency: EmergencyService
    feedback: FeedbackService | None = None

    @classmethod
    def from_client(
        cls, client: ApiClient, feedback: FeedbackService | None = None
    ) -> CareServices:
        return cls(
            client=client,
            users=UserService(client),
            doctors=DoctorService(client),
            appointments=AppointmentService(client),
            medications=MedicationService(client),
            health_records=HealthRecordService(client),
            notifications=NotificationService(client),
            pharmacies=PharmacyService(client),
            emergency=EmergencyService(client),
            feedback=feedback,
        )


__all__ = [
    "AppointmentService",
    "CareServices",
    "DoctorService",
    "EmergencyService",
    "FeedbackService",
    "HealthRecordService",
    "MedicationService",
    "NotificationService",
    "PharmacyService",
    "UserService",
]
