"""Entity models for the care domain.

Entities are plain dataclasses parsed from the API's camelCase JSON via
``from_dict``. Unknown keys are ignored and missing optional keys fall
back to defaults; a missing ``id`` or a non-object payload raises
``KeyError``/``TypeError``, which ``ApiResult.map`` turns into a failed
result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%B %d, %Y", "%b %d, %Y")
_TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p")


def _require_dict(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected {kind} object, got {type(data).__name__}")
    return data


def _str(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return None if value is None or value == "" else str(value)


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def parse_date(value: str | None) -> date | None:
    """Parse an API date string; ISO datetimes are truncated to the date."""
    if not value:
        return None
    value = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_time(value: str | None) -> time | None:
    if not value:
        return None
    value = value.strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------

@dataclass
class MedicalInfo:
    blood_type: str = ""
    height: str = ""
    weight: str = ""
    allergies: list[str] = field(default_factory=list)
    chronic_conditions: list[str] = field(default_factory=list)
    insurance_provider: str = ""
    insurance_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MedicalInfo:
        data = data or {}
        return cls(
            blood_type=_str(data, "bloodType"),
            height=_str(data, "height"),
            weight=_str(data, "weight"),
            allergies=_str_list(data.get("allergies")),
            chronic_conditions=_str_list(data.get("chronicConditions")),
            insurance_provider=_str(data, "insuranceProvider"),
            insurance_id=_str(data, "insuranceId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "bloodType": self.blood_type,
            "height": self.height,
            "weight": self.weight,
            "allergies": list(self.allergies),
            "chronicConditions": list(self.chronic_conditions),
            "insuranceProvider": self.insurance_provider,
            "insuranceId": self.insurance_id,
        }


@dataclass
class UserEmergencyContact:
    """The person listed on the user's profile, not a directory EmergencyContact."""

    name: str = ""
    relationship: str = ""
    phone: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserEmergencyContact:
        data = data or {}
        return cls(
            name=_str(data, "name"),
            relationship=_str(data, "relationship"),
            phone=_str(data, "phone"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "relationship": self.relationship, "phone": self.phone}


@dataclass
class UserPreferences:
    push_notifications: bool = True
    email_notifications: bool = True
    sms_notifications: bool = False
    dark_mode: bool = False
    biometric_auth: bool = False
    language: str = "English"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserPreferences:
        data = data or {}
        defaults = cls()
        return cls(
            push_notifications=bool(data.get("pushNotifications", defaults.push_notifications)),
            email_notifications=bool(data.get("emailNotifications", defaults.email_notifications)),
            sms_notifications=bool(data.get("smsNotifications", defaults.sms_notifications)),
            dark_mode=bool(data.get("darkMode", defaults.dark_mode)),
            biometric_auth=bool(data.get("biometricAuth", defaults.biometric_auth)),
            language=_str(data, "language", defaults.language),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "pushNotifications": self.push_notifications,
            "emailNotifications": self.email_notifications,
            "smsNotifications": self.sms_notifications,
            "darkMode": self.dark_mode,
            "biometricAuth": self.biometric_auth,
            "language": self.language,
        }


@dataclass
class User:
    """The signed-in patient and their profile."""

    id: int
    full_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str = ""
    gender: str = ""
    address: str = ""
    avatar: str = ""
    member_since: str = ""
    emergency_contact: UserEmergencyContact = field(default_factory=UserEmergencyContact)
    medical_info: MedicalInfo = field(default_factory=MedicalInfo)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    @classmethod
    def from_dict(cls, data: Any) -> User:
        data = _require_dict(data, "user")
        return cls(
            id=data["id"],
            full_name=_str(data, "fullName"),
            email=_str(data, "email"),
            phone=_str(data, "phone"),
            date_of_birth=_str(data, "dateOfBirth"),
            gender=_str(data, "gender"),
            address=_str(data, "address"),
            avatar=_str(data, "avatar"),
            member_since=_str(data, "memberSince"),
            emergency_contact=UserEmergencyContact.from_dict(data.get("emergencyContact")),
            medical_info=MedicalInfo.from_dict(data.get("medicalInfo")),
            preferences=UserPreferences.from_dict(data.get("preferences")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender,
            "address": self.address,
            "avatar": self.avatar,
            "memberSince": self.member_since,
            "emergencyContact": self.emergency_contact.to_dict(),
            "medicalInfo": self.medical_info.to_dict(),
            "preferences": self.preferences.to_dict(),
        }


@dataclass
class AuthSession:
    """Payload of a successful login or registration."""

    token: str
    user: User | None = None
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AuthSession:
        data = _require_dict(data, "auth")
        token = data.get("token")
        if not token or not isinstance(token, str):
            raise ValueError("auth response did not include a token")
        user_data = data.get("user")
        return cls(
            token=token,
            user=User.from_dict(user_data) if user_data else None,
            refresh_token=_opt_str(data, "refreshToken"),
        )


# ---------------------------------------------------------------------------
# Doctors and appointments
# ---------------------------------------------------------------------------

@dataclass
class Doctor:
    """Read-only catalog entry."""

    id: int
    name: str = ""
    specialty: str = ""
    phone: str = ""
    email: str = ""
    avatar: str = ""
    last_seen: str = ""
    verified: bool = False
    rating: float = 0.0
    reviews: int = 0
    experience: str = ""
    about: str = ""
    education: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    availability: str = ""
    consultation_fee: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> Doctor:
        data = _require_dict(data, "doctor")
        return cls(
            id=data["id"],
            name=_str(data, "name"),
            specialty=_str(data, "specialty"),
            phone=_str(data, "phone"),
            email=_str(data, "email"),
            avatar=_str(data, "avatar"),
            last_seen=_str(data, "lastSeen"),
            verified=bool(data.get("verified", False)),
            rating=float(data.get("rating") or 0.0),
            reviews=int(data.get("reviews") or 0),
            experience=_str(data, "experience"),
            about=_str(data, "about"),
            education=_str_list(data.get("education")),
            languages=_unique(_str_list(data.get("languages"))),
            availability=_str(data, "availability"),
            consultation_fee=float(data.get("consultationFee") or 0.0),
        )


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Appointment:
    id: int
    doctor_id: int
    doctor_name: str = ""
    specialty: str = ""
    date: str = ""
    time: str = ""
    status: str = AppointmentStatus.SCHEDULED.value
    type: str = ""
    reason: str = ""
    location: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Appointment:
        data = _require_dict(data, "appointment")
        return cls(
            id=data["id"],
            doctor_id=data.get("doctorId", 0),
            doctor_name=_str(data, "doctorName"),
            specialty=_str(data, "specialty"),
            date=_str(data, "date"),
            time=_str(data, "time"),
            status=_str(data, "status", AppointmentStatus.SCHEDULED.value).lower(),
            type=_str(data, "type"),
            reason=_str(data, "reason"),
            location=_opt_str(data, "location"),
            notes=_opt_str(data, "notes"),
        )

    def starts_at(self) -> datetime | None:
        """Naive local start time; an unparseable time means midnight."""
        day = parse_date(self.date)
        if day is None:
            return None
        return datetime.combine(day, parse_time(self.time) or time.min)

    def is_upcoming(self, now: datetime) -> bool:
        """Not completed and starting at or after ``now``.

        The comparison uses the start time, not just the date: an
        appointment earlier today is past. Without a readable time it
        starts at midnight. An unreadable date is never upcoming.
        """
        starts = self.starts_at()
        return (
            starts is not None
            and starts >= now
            and self.status != AppointmentStatus.COMPLETED
        )


# ---------------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------------

@dataclass
class Medication:
    id: int
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    times: list[str] = field(default_factory=list)
    start_date: str = ""
    end_date: str | None = None
    prescribed_by: str = ""
    instructions: str = ""
    refills: int = 0
    color: str = ""
    available: bool = True
    # date -> times already taken that day; each (date, time) at most once
    taken: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Medication:
        data = _require_dict(data, "medication")
        taken_raw = data.get("taken") or {}
        if not isinstance(taken_raw, dict):
            raise TypeError("medication.taken must be an object")
        return cls(
            id=data["id"],
            name=_str(data, "name"),
            dosage=_str(data, "dosage"),
            frequency=_str(data, "frequency"),
            times=_str_list(data.get("times")),
            start_date=_str(data, "startDate"),
            end_date=_opt_str(data, "endDate"),
            prescribed_by=_str(data, "prescribedBy"),
            instructions=_str(data, "instructions"),
            refills=int(data.get("refills") or 0),
            color=_str(data, "color"),
            available=bool(data.get("available", True)),
            taken={str(day): _unique(_str_list(times)) for day, times in taken_raw.items()},
        )

    def is_taken(self, day: str, at: str) -> bool:
        return at in self.taken.get(day, [])

    def is_active(self, today: date) -> bool:
        end = parse_date(self.end_date)
        return end is None or end >= today


# ---------------------------------------------------------------------------
# Health records (tagged union on category)
# ---------------------------------------------------------------------------

@dataclass
class VitalSigns:
    blood_pressure: str | None = None
    heart_rate: str | None = None
    temperature: str | None = None
    weight: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> VitalSigns:
        data = data or {}
        return cls(
            blood_pressure=_opt_str(data, "bloodPressure"),
            heart_rate=_opt_str(data, "heartRate"),
            temperature=_opt_str(data, "temperature"),
            weight=_opt_str(data, "weight"),
        )


@dataclass
class LabValue:
    name: str
    value: str = ""
    unit: str = ""
    range: str = ""
    status: str = ""


@dataclass
class HealthRecord:
    """Fields shared by every record category."""

    id: int
    title: str = ""
    date: str = ""
    type: str = ""
    category: str = ""
    icon: str = ""
    doctor: str = ""
    status: str | None = None

    @classmethod
    def _common(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": data["id"],
            "title": _str(data, "title"),
            "date": _str(data, "date"),
            "type": _str(data, "type"),
            "category": _str(data, "category"),
            "icon": _str(data, "icon"),
            "doctor": _str(data, "doctor"),
            "status": _opt_str(data, "status"),
        }

    @classmethod
    def from_dict(cls, data: Any) -> HealthRecord:
        return cls(**cls._common(_require_dict(data, "health record")))


@dataclass
class LabResultRecord(HealthRecord):
    results: list[LabValue] = field(default_factory=list)
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> LabResultRecord:
        data = _require_dict(data, "health record")
        return cls(
            **cls._common(data),
            results=_parse_lab_values(data.get("results")),
            description=_opt_str(data, "description"),
        )


@dataclass
class VisitRecord(HealthRecord):
    findings: str | None = None
    vitals: VitalSigns = field(default_factory=VitalSigns)
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> VisitRecord:
        data = _require_dict(data, "health record")
        return cls(
            **cls._common(data),
            findings=_opt_str(data, "findings"),
            vitals=VitalSigns.from_dict(data.get("vitals")),
            description=_opt_str(data, "description"),
        )


@dataclass
class PrescriptionRecord(HealthRecord):
    medication: str = ""
    instructions: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> PrescriptionRecord:
        data = _require_dict(data, "health record")
        return cls(
            **cls._common(data),
            medication=_str(data, "medication"),
            instructions=_str(data, "instructions"),
        )


@dataclass
class ImagingRecord(HealthRecord):
    findings: str | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ImagingRecord:
        data = _require_dict(data, "health record")
        return cls(
            **cls._common(data),
            findings=_opt_str(data, "findings"),
            description=_opt_str(data, "description"),
        )


@dataclass
class VaccinationRecord(HealthRecord):
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> VaccinationRecord:
        data = _require_dict(data, "health record")
        return cls(**cls._common(data), description=_opt_str(data, "description"))


@dataclass
class GeneralRecord(HealthRecord):
    """Any category without a dedicated variant."""

    description: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> GeneralRecord:
        data = _require_dict(data, "health record")
        return cls(**cls._common(data), description=_opt_str(data, "description"))


_RECORD_VARIANTS: dict[str, type[HealthRecord]] = {
    "lab": LabResultRecord,
    "labs": LabResultRecord,
    "lab results": LabResultRecord,
    "visit": VisitRecord,
    "consultation": VisitRecord,
    "prescription": PrescriptionRecord,
    "imaging": ImagingRecord,
    "vaccination": VaccinationRecord,
    "immunization": VaccinationRecord,
}


def parse_health_record(data: Any) -> HealthRecord:
    """Build the record variant matching ``data["category"]``."""
    data = _require_dict(data, "health record")
    category = _str(data, "category").strip().lower()
    return _RECORD_VARIANTS.get(category, GeneralRecord).from_dict(data)


def _parse_lab_values(raw: Any) -> list[LabValue]:
    if not raw:
        return []
    if isinstance(raw, dict):
        return [LabValue(name=str(k), value=str(v)) for k, v in raw.items()]
    values = []
    for item in raw:
        item = _require_dict(item, "lab value")
        values.append(
            LabValue(
                name=_str(item, "name"),
                value=_str(item, "value"),
                unit=_str(item, "unit"),
                range=_str(item, "range"),
                status=_str(item, "status"),
            )
        )
    return values


# ---------------------------------------------------------------------------
# Notifications, pharmacies, emergency contacts
# ---------------------------------------------------------------------------

@dataclass
class Notification:
    id: int
    type: str = ""
    icon: str = ""
    icon_bg: str = ""
    icon_color: str = ""
    title: str = ""
    message: str = ""
    time: str = ""
    timestamp: str = ""
    read: bool = False
    actionable: bool = False
    action: str | None = None  # deep-link target, consumed by routing

    @classmethod
    def from_dict(cls, data: Any) -> Notification:
        data = _require_dict(data, "notification")
        return cls(
            id=data["id"],
            type=_str(data, "type"),
            icon=_str(data, "icon"),
            icon_bg=_str(data, "iconBg"),
            icon_color=_str(data, "iconColor"),
            title=_str(data, "title"),
            message=_str(data, "message"),
            time=_str(data, "time"),
            timestamp=_str(data, "timestamp"),
            read=bool(data.get("read", False)),
            actionable=bool(data.get("actionable", False)),
            action=_opt_str(data, "action"),
        )


@dataclass
class Pharmacy:
    id: int
    name: str = ""
    distance: str = ""
    rating: float = 0.0
    reviews: int = 0
    open: bool = False
    address: str = ""
    phone: str = ""
    hours: dict[str, str] = field(default_factory=dict)
    services: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Pharmacy:
        data = _require_dict(data, "pharmacy")
        hours = data.get("hours") or {}
        return cls(
            id=data["id"],
            name=_str(data, "name"),
            distance=_str(data, "distance"),
            rating=float(data.get("rating") or 0.0),
            reviews=int(data.get("reviews") or 0),
            open=bool(data.get("open", False)),
            address=_str(data, "address"),
            phone=_str(data, "phone"),
            hours={str(day): str(span) for day, span in dict(hours).items()},
            services=_str_list(data.get("services")),
        )


class EmergencyContactType(str, Enum):
    EMERGENCY_SERVICES = "Emergency Services"
    PRIMARY_CARE = "Primary Care"
    SPECIALIST = "Specialist"
    FAMILY = "Family"
    HOSPITAL = "Hospital"


@dataclass
class EmergencyContact:
    id: int
    type: str = ""
    name: str = ""
    phone: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> EmergencyContact:
        data = _require_dict(data, "emergency contact")
        return cls(
            id=data["id"],
            type=_str(data, "type"),
            name=_str(data, "name"),
            phone=_str(data, "phone"),
            description=_str(data, "description"),
        )


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

class FeedbackCategory(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    COMPLAINT = "complaint"
    OTHER = "other"


class FeedbackStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"


@dataclass
class DeviceInfo:
    platform: str = ""
    version: str = ""
    model: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"platform": self.platform, "version": self.version, "model": self.model}


@dataclass
class FeedbackSubmission:
    id: str
    category: FeedbackCategory
    subject: str
    description: str
    timestamp: str
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    status: str = FeedbackStatus.PENDING.value
    rating: int | None = None
    email: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FeedbackSubmission:
        data = _require_dict(data, "feedback")
        device = data.get("deviceInfo") or {}
        rating = data.get("rating")
        return cls(
            id=str(data["id"]),
            category=FeedbackCategory(_str(data, "category", FeedbackCategory.OTHER.value)),
            subject=_str(data, "subject"),
            description=_str(data, "description"),
            timestamp=_str(data, "timestamp"),
            device_info=DeviceInfo(
                platform=_str(device, "platform"),
                version=_str(device, "version"),
                model=_str(device, "model"),
            ),
            status=_str(data, "status", FeedbackStatus.PENDING.value),
            rating=int(rating) if rating is not None else None,
            email=_opt_str(data, "email"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "category": self.category.value,
            "subject": self.subject,
            "description": self.description,
            "deviceInfo": self.device_info.to_dict(),
            "timestamp": self.timestamp,
            "status": self.status,
        }
        if self.rating is not None:
            out["rating"] = self.rating
        if self.email is not None:
            out["email"] = self.email
        return out


def parse_list(parser, data: Any) -> list:
    """Parse a JSON array with ``parser``; anything else raises TypeError.

    Entries ``parser`` cannot read are logged and skipped.
    """
    if not isinstance(data, list):
        raise TypeError(f"Expected a list, got {type(data).__name__}")
    items = []
    for item in data:
        try:
            items.append(parser(item))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping unreadable entry: %s", exc)
    return items
