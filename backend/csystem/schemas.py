# backend/csystem/schemas.py

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from csystem.enums import (
    SELF_SERVICE_ROLES, AffiliationStatus, AssessmentType, Gender, JoinDecision,
    ModuleStatus, Role
)
from csystem.validation import is_valid_nik, is_valid_whatsapp


class BlankAsNone(BaseModel):
    """Inputs where an empty string means "not provided"."""

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


# -------------------------------
# Auth Schemas
# -------------------------------
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role
    province_id: str = Field(..., min_length=1)
    city_id: str = Field(..., min_length=1)
    whatsapp: str
    date_of_birth: Optional[date] = None
    child_core_id: Optional[str] = None

    @field_validator("role")
    @classmethod
    def self_service_role(cls, value: Role) -> Role:
        if value not in SELF_SERVICE_ROLES:
            raise ValueError(f"Role {value.value} cannot be chosen at signup")
        return value

    @field_validator("whatsapp")
    @classmethod
    def whatsapp_format(cls, value: str) -> str:
        if not is_valid_whatsapp(value):
            raise ValueError("Invalid WhatsApp number format")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PersonOut(BaseModel):
    id: str
    core_id: Optional[str] = None
    email: str
    name: str
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    nik: Optional[str] = None
    nik_verified: bool = False
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    province_id: Optional[str] = None
    city_id: Optional[str] = None
    is_student: bool = False
    occupation: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    person: Optional[PersonOut] = None


class EmailCheckOut(BaseModel):
    exists: bool
    name: Optional[str] = None
    current_roles: List[Role] = []


class ClubListItem(BaseModel):
    id: str
    name: str
    city: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------------------
# Role extension Schemas
# -------------------------------
class AthleteDataIn(BlankAsNone):
    division: Optional[str] = None
    archery_category: Optional[str] = None
    skill_level: Optional[str] = None
    school_id: Optional[str] = None
    school_name: Optional[str] = None
    nisn: Optional[str] = None
    current_class: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    arm_span: Optional[float] = None
    draw_length: Optional[float] = None
    dominant_hand: Optional[str] = None
    dominant_eye: Optional[str] = None
    bow_brand: Optional[str] = None
    bow_model: Optional[str] = None
    bow_draw_weight: Optional[float] = None
    arrow_brand: Optional[str] = None
    arrow_spine: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_notes: Optional[str] = None

    @field_validator("parent_phone", "emergency_phone")
    @classmethod
    def phone_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_whatsapp(value):
            raise ValueError("Invalid phone number format")
        return value


class ClubDataIn(BlankAsNone):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    instagram: Optional[str] = None
    whatsapp_hotline: Optional[str] = None
    description: Optional[str] = None
    is_perpani_member: Optional[bool] = None

    @field_validator("whatsapp_hotline")
    @classmethod
    def hotline_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_whatsapp(value):
            raise ValueError("Invalid hotline number format")
        return value


class SchoolDataIn(BlankAsNone):
    name: Optional[str] = None
    npsn: Optional[str] = None
    address: Optional[str] = None
    principal_name: Optional[str] = None


class JudgeDataIn(BlankAsNone):
    license_number: Optional[str] = None
    license_level: Optional[str] = None
    license_expiry: Optional[date] = None


class CoachDataIn(BlankAsNone):
    certification: Optional[str] = None
    certification_level: Optional[str] = None
    specialization: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0)


# -------------------------------
# Profile Schemas
# -------------------------------
class RootIdentityUpdate(BlankAsNone):
    name: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    nik: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    province_id: Optional[str] = None
    city_id: Optional[str] = None
    is_student: Optional[bool] = None
    occupation: Optional[str] = None

    @field_validator("whatsapp")
    @classmethod
    def whatsapp_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_whatsapp(value):
            raise ValueError("Invalid WhatsApp number format")
        return value

    @field_validator("nik")
    @classmethod
    def nik_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_nik(value):
            raise ValueError("NIK must be exactly 16 digits")
        return value


class ProfileUpdate(RootIdentityUpdate):
    athlete_data: Optional[AthleteDataIn] = None
    club_data: Optional[ClubDataIn] = None
    school_data: Optional[SchoolDataIn] = None
    judge_data: Optional[JudgeDataIn] = None
    coach_data: Optional[CoachDataIn] = None


class ChildProfileUpdate(RootIdentityUpdate):
    athlete_data: Optional[AthleteDataIn] = None


class Completeness(BaseModel):
    is_complete: bool
    errors: Dict[str, str] = {}


class ProfileOut(BaseModel):
    person: PersonOut
    role_data: Optional[Dict[str, Any]] = None
    age: Optional[int] = None
    age_category: Optional[str] = None
    completeness: Completeness


class AvatarUpdate(BaseModel):
    avatar_url: str = Field(..., min_length=1)


class LinkChildRequest(BaseModel):
    child_core_id: str = Field(..., min_length=1)


class RespondIntegrationRequest(BaseModel):
    link_id: str
    approve: bool


class ParentLinkOut(BaseModel):
    id: str
    parent_id: str
    athlete_id: str
    status: str
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChildOut(BaseModel):
    id: str
    core_id: Optional[str] = None
    name: str
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    is_minor: bool = False


# -------------------------------
# Club affiliation Schemas
# -------------------------------
class ClubStatusOut(BaseModel):
    athlete_id: str
    athlete_name: Optional[str] = None
    status: AffiliationStatus
    club_id: Optional[str] = None
    club_name: Optional[str] = None
    affiliation_id: Optional[str] = None
    since: Optional[datetime] = None
    is_minor: bool = False


class JoinClubRequest(BaseModel):
    club_id: str
    athlete_id: Optional[str] = None
    notes: Optional[str] = None


class LeaveClubRequest(BaseModel):
    athlete_id: Optional[str] = None
    reason: Optional[str] = None


class AffiliationOut(BaseModel):
    id: str
    athlete_id: str
    athlete_name: Optional[str] = None
    club_id: str
    club_name: Optional[str] = None
    status: AffiliationStatus
    notes: Optional[str] = None
    requested_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    left_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class JoinDecisionRequest(BaseModel):
    decision: JoinDecision
    notes: Optional[str] = None


# -------------------------------
# Module Schemas
# -------------------------------
class FieldOption(BaseModel):
    label: str
    value: str


class FieldBase(BaseModel):
    section_name: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)
    field_type: str
    label: str = Field(..., min_length=1)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    is_required: bool = False
    is_scored: bool = False
    max_score: int = Field(0, ge=0)
    feedback_good: Optional[str] = None
    feedback_bad: Optional[str] = None
    options: Optional[List[FieldOption]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    sort_order: Optional[int] = None


class FieldCreate(FieldBase):
    pass


class FieldUpdate(BaseModel):
    section_name: Optional[str] = None
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    label: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    is_required: Optional[bool] = None
    is_scored: Optional[bool] = None
    max_score: Optional[int] = Field(None, ge=0)
    feedback_good: Optional[str] = None
    feedback_bad: Optional[str] = None
    options: Optional[List[FieldOption]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    sort_order: Optional[int] = None


class FieldOut(FieldBase):
    id: str
    module_id: str
    max_score: int = 0
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class SectionOut(BaseModel):
    id: str
    name: str
    position: int
    fields: List[FieldOut] = []

    model_config = ConfigDict(from_attributes=True)


class ModuleBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = "clipboard"
    allowed_roles: List[Role] = []
    show_in_menu: bool = False
    menu_category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Module name is required")
        return value.strip()


class ModuleCreate(ModuleBase):
    pass


class ModuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    status: Optional[ModuleStatus] = None
    allowed_roles: Optional[List[Role]] = None
    show_in_menu: Optional[bool] = None
    menu_category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Module name is required")
        return value.strip() if value else value


class ModuleOut(ModuleBase):
    id: str
    core_id: Optional[str] = None
    status: ModuleStatus
    version: int = 1
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ModuleDetailOut(ModuleOut):
    sections: List[SectionOut] = []


class FieldTypeInfoOut(BaseModel):
    type: str
    label: str
    common_term: str
    function: str
    sample: str


class FieldTypeCategoryOut(BaseModel):
    category: str
    types: List[FieldTypeInfoOut]


# -------------------------------
# Assessment Schemas
# -------------------------------
class AssessmentCreate(BaseModel):
    module_id: str
    athlete_id: str
    assessment_type: AssessmentType = AssessmentType.POST_TEST
    assessment_date: Optional[date] = None
    field_values: Dict[str, Any]
    notes: Optional[str] = None


class AssessmentOut(BaseModel):
    id: str
    assessment_no: str
    module_id: str
    athlete_id: str
    assessor_id: Optional[str] = None
    assessment_type: AssessmentType
    assessment_date: Optional[date] = None
    status: str
    field_values: Dict[str, Any] = {}
    section_scores: Dict[str, int] = {}
    total_score: int = 0
    feedback: Dict[str, str] = {}
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------------------
# Document Schemas
# -------------------------------
class DocumentOut(BaseModel):
    id: str
    core_id: str
    title: str
    category: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    uploaded_by_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentRename(BaseModel):
    title: str = Field(..., min_length=1)


# -------------------------------
# Shipping Schemas
# -------------------------------
class CourierInfoIn(BaseModel):
    courier_name: str = Field(..., min_length=1)
    awb_number: str = Field(..., min_length=1)
    tracking_url: Optional[str] = None
    shipping_cost: float = Field(0, ge=0)
    estimated_delivery: Optional[date] = None


class CourierInfoOut(BaseModel):
    id: str
    order_id: str
    courier_name: str
    awb_number: str
    tracking_url: Optional[str] = None
    shipping_cost: float = 0
    estimated_delivery: Optional[date] = None
    shipped_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    order_no: str
    supplier_id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    status: str
    total_amount: float = 0
    created_at: Optional[datetime] = None
    courier_info: Optional[CourierInfoOut] = None

    model_config = ConfigDict(from_attributes=True)


class OrderTrackingOut(BaseModel):
    id: str
    order_id: str
    status: str
    description: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
