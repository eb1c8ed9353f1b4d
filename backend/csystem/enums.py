# backend/csystem/enums.py

from enum import Enum


# -------------------------------
# Roles
# -------------------------------
class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    PERPANI = "PERPANI"
    CLUB = "CLUB"
    SCHOOL = "SCHOOL"
    ATHLETE = "ATHLETE"
    PARENT = "PARENT"
    COACH = "COACH"
    JUDGE = "JUDGE"
    EO = "EO"
    SUPPLIER = "SUPPLIER"
    MANPOWER = "MANPOWER"

    @property
    def code(self) -> str:
        return ROLE_CODES[self]


ROLE_CODES = {
    Role.SUPER_ADMIN: "00",
    Role.PERPANI: "01",
    Role.CLUB: "02",
    Role.SCHOOL: "03",
    Role.ATHLETE: "04",
    Role.PARENT: "05",
    Role.COACH: "06",
    Role.JUDGE: "07",
    Role.EO: "08",
    Role.SUPPLIER: "09",
    Role.MANPOWER: "10",
}

# Roles a visitor can pick during onboarding (codes 01-09)
SELF_SERVICE_ROLES = [
    Role.PERPANI, Role.CLUB, Role.SCHOOL, Role.ATHLETE, Role.PARENT,
    Role.COACH, Role.JUDGE, Role.EO, Role.SUPPLIER,
]


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


# -------------------------------
# Club affiliation
# -------------------------------
class AffiliationStatus(str, Enum):
    # NONE is only ever derived; REJECTED is only ever stored
    NONE = "NONE"
    PENDING = "PENDING"
    MEMBER = "MEMBER"
    LEFT = "LEFT"
    REJECTED = "REJECTED"


class JoinDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ParentLinkStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# -------------------------------
# Modules & assessments
# -------------------------------
class ModuleStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class AssessmentType(str, Enum):
    PRE_TEST = "PRE_TEST"
    POST_TEST = "POST_TEST"
    ASSESSMENT = "ASSESSMENT"


class AssessmentStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    REVIEWED = "REVIEWED"


# -------------------------------
# Orders
# -------------------------------
class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PRODUCTION = "PRODUCTION"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
