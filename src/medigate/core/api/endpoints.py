"""Endpoint registry: logical operation names mapped to URL path templates.

Templates may contain ``:name`` placeholders that ``ApiClient.build_url``
fills from the request's URL parameters. Several operations share a path
(get/update/delete of one appointment); they stay distinct members so the
fixture backend can tell them apart.
"""

from __future__ import annotations

from enum import Enum


class Endpoint(str, Enum):
    """Logical API operations."""

    # Auth
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    USER_REGISTER = "user_register"

    # User
    USER = "user"
    USER_UPDATE = "user_update"

    # Doctors
    DOCTORS = "doctors"
    DOCTOR_BY_ID = "doctor_by_id"

    # Appointments
    APPOINTMENTS = "appointments"
    APPOINTMENT_BY_ID = "appointment_by_id"
    APPOINTMENT_CREATE = "appointment_create"
    APPOINTMENT_UPDATE = "appointment_update"
    APPOINTMENT_DELETE = "appointment_delete"

    # Medications
    MEDICATIONS = "medications"
    MEDICATION_BY_ID = "medication_by_id"
    MEDICATION_MARK_TAKEN = "medication_mark_taken"

    # Health records
    HEALTH_RECORDS = "health_records"
    HEALTH_RECORD_BY_ID = "health_record_by_id"

    # Notifications
    NOTIFICATIONS = "notifications"
    NOTIFICATION_MARK_READ = "notification_mark_read"
    NOTIFICATION_MARK_ALL_READ = "notification_mark_all_read"

    # Pharmacies
    PHARMACIES = "pharmacies"
    PHARMACY_BY_ID = "pharmacy_by_id"

    # Emergency contacts
    EMERGENCY_CONTACTS = "emergency_contacts"

    # Feedback
    FEEDBACK_SUBMIT = "feedback_submit"
    FEEDBACK_LIST = "feedback_list"
    FEEDBACK_SYNC = "feedback_sync"

    @property
    def path(self) -> str:
        """The path template registered for this operation."""
        return API_ENDPOINTS[self]


API_ENDPOINTS: dict[Endpoint, str] = {
    Endpoint.USER_LOGIN: "/api/auth/login",
    Endpoint.USER_LOGOUT: "/api/auth/logout",
    Endpoint.USER_REGISTER: "/api/auth/register",
    Endpoint.USER: "/api/auth/user",
    Endpoint.USER_UPDATE: "/api/auth/user/update",
    Endpoint.DOCTORS: "/api/doctors",
    Endpoint.DOCTOR_BY_ID: "/api/doctors/:id",
    Endpoint.APPOINTMENTS: "/api/appointments",
    Endpoint.APPOINTMENT_BY_ID: "/api/appointments/:id",
    Endpoint.APPOINTMENT_CREATE: "/api/appointments/create",
    Endpoint.APPOINTMENT_UPDATE: "/api/appointments/:id",
    Endpoint.APPOINTMENT_DELETE: "/api/appointments/:id",
    Endpoint.MEDICATIONS: "/api/medications",
    Endpoint.MEDICATION_BY_ID: "/api/medications/:id",
    Endpoint.MEDICATION_MARK_TAKEN: "/api/medications/:id/taken",
    Endpoint.HEALTH_RECORDS: "/api/health-records",
    Endpoint.HEALTH_RECORD_BY_ID: "/api/health-records/:id",
    Endpoint.NOTIFICATIONS: "/api/notifications",
    Endpoint.NOTIFICATION_MARK_READ: "/api/notifications/:id/read",
    Endpoint.NOTIFICATION_MARK_ALL_READ: "/api/notifications/read-all",
    Endpoint.PHARMACIES: "/api/pharmacies",
    Endpoint.PHARMACY_BY_ID: "/api/pharmacies/:id",
    Endpoint.EMERGENCY_CONTACTS: "/api/emergency-contacts",
    Endpoint.FEEDBACK_SUBMIT: "/api/feedback/submit",
    Endpoint.FEEDBACK_LIST: "/api/feedback",
    # Collector delivery from the offline feedback queue
    Endpoint.FEEDBACK_SYNC: "/api/feedback",
}
