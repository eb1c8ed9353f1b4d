# backend/csystem/models.py

import uuid

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, Numeric,
    String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from csystem.db import Base
from csystem.enums import (
    AffiliationStatus, AssessmentStatus, AssessmentType, ModuleStatus,
    OrderStatus, ParentLinkStatus
)


def _uuid() -> str:
    return str(uuid.uuid4())


# -------------------------------
# Persons (Root Identity)
# -------------------------------
class Person(Base):
    __tablename__ = "person"
    id = Column(String(36), primary_key=True, default=_uuid)
    core_id = Column(String, unique=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String)
    whatsapp = Column(String)
    nik = Column(String(16))
    nik_verified = Column(Boolean, default=False)
    date_of_birth = Column(Date)
    gender = Column(String)
    province_id = Column(String)
    city_id = Column(String)
    is_student = Column(Boolean, default=False)
    occupation = Column(String)
    avatar_url = Column(String)
    role = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    athlete_data = relationship("AthleteData", back_populates="person", uselist=False,
                                foreign_keys="AthleteData.person_id")
    club_data = relationship("ClubData", back_populates="person", uselist=False)
    school_data = relationship("SchoolData", back_populates="person", uselist=False)
    judge_data = relationship("JudgeData", back_populates="person", uselist=False)
    coach_data = relationship("CoachData", back_populates="person", uselist=False)
    manpower_data = relationship("ManpowerData", back_populates="person", uselist=False,
                                 foreign_keys="ManpowerData.person_id")


# -------------------------------
# Role extensions
# -------------------------------
class AthleteData(Base):
    __tablename__ = "athlete_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    division = Column(String)
    archery_category = Column(String)
    skill_level = Column(String)
    school_id = Column(String)
    school_name = Column(String)
    nisn = Column(String)
    current_class = Column(String)
    parent_name = Column(String)
    parent_phone = Column(String)
    parent_id = Column(String(36), ForeignKey("person.id"))
    height = Column(Float)
    weight = Column(Float)
    arm_span = Column(Float)
    draw_length = Column(Float)
    dominant_hand = Column(String)
    dominant_eye = Column(String)
    bow_brand = Column(String)
    bow_model = Column(String)
    bow_draw_weight = Column(Float)
    arrow_brand = Column(String)
    arrow_spine = Column(String)
    emergency_contact = Column(String)
    emergency_phone = Column(String)
    medical_notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    person = relationship("Person", back_populates="athlete_data", foreign_keys=[person_id])


class ClubData(Base):
    __tablename__ = "club_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    name = Column(String, nullable=False)
    address = Column(Text)
    city = Column(String)
    province = Column(String)
    postal_code = Column(String)
    phone = Column(String)
    email = Column(String)
    website = Column(String)
    instagram = Column(String)
    whatsapp_hotline = Column(String)
    description = Column(Text)
    is_perpani_member = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    person = relationship("Person", back_populates="club_data")
    affiliations = relationship("ClubAffiliation", back_populates="club")


class SchoolData(Base):
    __tablename__ = "school_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    name = Column(String)
    npsn = Column(String)
    address = Column(Text)
    principal_name = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    person = relationship("Person", back_populates="school_data")


class JudgeData(Base):
    __tablename__ = "judge_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    license_number = Column(String)
    license_level = Column(String)
    license_expiry = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    person = relationship("Person", back_populates="judge_data")


class CoachData(Base):
    __tablename__ = "coach_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    certification = Column(String)
    certification_level = Column(String)
    specialization = Column(String)
    experience_years = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    person = relationship("Person", back_populates="coach_data")


class ManpowerData(Base):
    __tablename__ = "manpower_data"
    id = Column(String(36), primary_key=True, default=_uuid)
    person_id = Column(String(36), ForeignKey("person.id"), unique=True, nullable=False)
    supplier_id = Column(String(36), ForeignKey("person.id"), nullable=False)
    position = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    person = relationship("Person", back_populates="manpower_data", foreign_keys=[person_id])


# -------------------------------
# Guardian links
# -------------------------------
class ParentLink(Base):
    __tablename__ = "parent_link"
    __table_args__ = (UniqueConstraint("parent_id", "athlete_id", name="uq_parent_link"),)
    id = Column(String(36), primary_key=True, default=_uuid)
    parent_id = Column(String(36), ForeignKey("person.id"), nullable=False)
    athlete_id = Column(String(36), ForeignKey("person.id"), nullable=False)
    status = Column(String, nullable=False, default=ParentLinkStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    responded_at = Column(DateTime(timezone=True))

    parent = relationship("Person", foreign_keys=[parent_id])
    athlete = relationship("Person", foreign_keys=[athlete_id])


# -------------------------------
# Club affiliation
# -------------------------------
class ClubAffiliation(Base):
    __tablename__ = "club_affiliation"
    id = Column(String(36), primary_key=True, default=_uuid)
    athlete_id = Column(String(36), ForeignKey("person.id"), nullable=False, index=True)
    club_id = Column(String(36), ForeignKey("club_data.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=AffiliationStatus.PENDING.value)
    requested_by = Column(String(36), ForeignKey("person.id"))
    notes = Column(Text)
    requested_at = Column(DateTime(timezone=True), server_default=func.now())
    decided_at = Column(DateTime(timezone=True))
    decided_by = Column(String(36), ForeignKey("person.id"))
    left_at = Column(DateTime(timezone=True))

    club = relationship("ClubData", back_populates="affiliations")
    athlete = relationship("Person", foreign_keys=[athlete_id])

    @property
    def club_name(self):
        return self.club.name if self.club else None

    @property
    def athlete_name(self):
        return self.athlete.name if self.athlete else None


# -------------------------------
# Custom modules (assessment templates)
# -------------------------------
class CustomModule(Base):
    __tablename__ = "custom_module"
    id = Column(String(36), primary_key=True, default=_uuid)
    core_id = Column(String, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    icon = Column(String, default="clipboard")
    status = Column(String, nullable=False, default=ModuleStatus.DRAFT.value)
    version = Column(Integer, default=1)
    allowed_roles = Column(JSON, default=list)
    show_in_menu = Column(Boolean, default=False)
    menu_category = Column(String)
    created_by = Column(String(36), ForeignKey("person.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sections = relationship("ModuleSection", back_populates="module",
                            order_by="ModuleSection.position", cascade="all, delete-orphan")
    fields = relationship("ModuleField", back_populates="module",
                          order_by="ModuleField.sort_order", cascade="all, delete-orphan")


class ModuleSection(Base):
    __tablename__ = "module_section"
    __table_args__ = (UniqueConstraint("module_id", "name", name="uq_module_section_name"),)
    id = Column(String(36), primary_key=True, default=_uuid)
    module_id = Column(String(36), ForeignKey("custom_module.id"), nullable=False)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    module = relationship("CustomModule", back_populates="sections")
    fields = relationship("ModuleField", back_populates="section", order_by="ModuleField.sort_order")


class ModuleField(Base):
    __tablename__ = "module_field"
    __table_args__ = (UniqueConstraint("module_id", "field_name", name="uq_module_field_name"),)
    id = Column(String(36), primary_key=True, default=_uuid)
    module_id = Column(String(36), ForeignKey("custom_module.id"), nullable=False)
    section_id = Column(String(36), ForeignKey("module_section.id"), nullable=False)
    field_name = Column(String, nullable=False)
    field_type = Column(String, nullable=False)
    label = Column(String, nullable=False)
    placeholder = Column(String)
    help_text = Column(Text)
    is_required = Column(Boolean, default=False)
    is_scored = Column(Boolean, default=False)
    max_score = Column(Integer, default=0)
    feedback_good = Column(Text)
    feedback_bad = Column(Text)
    options = Column(JSON)
    min_value = Column(Float)
    max_value = Column(Float)
    sort_order = Column(Integer, default=0)

    module = relationship("CustomModule", back_populates="fields")
    section = relationship("ModuleSection", back_populates="fields")

    @property
    def section_name(self):
        return self.section.name if self.section else None


class AssessmentRecord(Base):
    __tablename__ = "assessment_record"
    id = Column(String(36), primary_key=True, default=_uuid)
    module_id = Column(String(36), ForeignKey("custom_module.id"), nullable=False)
    athlete_id = Column(String(36), ForeignKey("person.id"), nullable=False, index=True)
    assessor_id = Column(String(36), ForeignKey("person.id"))
    assessment_no = Column(String)
    assessment_type = Column(String, default=AssessmentType.ASSESSMENT.value)
    assessment_date = Column(Date)
    status = Column(String, default=AssessmentStatus.COMPLETED.value)
    field_values = Column(JSON, default=dict)
    section_scores = Column(JSON, default=dict)
    total_score = Column(Integer, default=0)
    feedback = Column(JSON, default=dict)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    module = relationship("CustomModule")


# -------------------------------
# Documents
# -------------------------------
class Document(Base):
    __tablename__ = "document"
    id = Column(String(36), primary_key=True, default=_uuid)
    core_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    category = Column(String, default="OTHER")
    file_url = Column(String, nullable=False)
    file_type = Column(String)
    file_size = Column(Integer)
    uploaded_by = Column(String)
    uploaded_by_id = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# -------------------------------
# Orders & shipping
# -------------------------------
class Order(Base):
    __tablename__ = "jersey_order"
    id = Column(String(36), primary_key=True, default=_uuid)
    order_no = Column(String, unique=True, nullable=False)
    supplier_id = Column(String(36), ForeignKey("person.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("person.id"))
    customer_name = Column(String)
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    total_amount = Column(Numeric(12, 2), default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    courier_info = relationship("CourierInfo", back_populates="order", uselist=False)
    tracking = relationship("OrderTracking", back_populates="order", order_by="OrderTracking.created_at")


class CourierInfo(Base):
    __tablename__ = "courier_info"
    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("jersey_order.id"), unique=True, nullable=False)
    courier_name = Column(String, nullable=False)
    awb_number = Column(String, nullable=False)
    tracking_url = Column(String)
    shipping_cost = Column(Numeric(12, 2), default=0)
    estimated_delivery = Column(Date)
    shipped_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="courier_info")


class OrderTracking(Base):
    __tablename__ = "order_tracking"
    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("jersey_order.id"), nullable=False, index=True)
    status = Column(String, nullable=False)
    description = Column(Text)
    updated_by = Column(String(36), ForeignKey("person.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="tracking")
