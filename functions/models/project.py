"""Project input models for FlacronBuild.

Pydantic models for the form submission that drives one estimate request.
The shared core is strict; the role-specific sub-records are permissive
bags that accept a superset of the form's fields and ignore the rest.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Role(str, Enum):
    """User role; selects the prompt template and report shape."""

    HOMEOWNER = "homeowner"
    CONTRACTOR = "contractor"
    INSPECTOR = "inspector"
    INSURANCE_ADJUSTER = "insurance-adjuster"

    @classmethod
    def resolve(cls, value: Any) -> Optional["Role"]:
        """Return the matching Role, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ProjectType(str, Enum):
    """Kind of construction project."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    RENOVATION = "renovation"
    INFRASTRUCTURE = "infrastructure"


class MaterialTier(str, Enum):
    """Material quality tier."""

    ECONOMY = "economy"
    STANDARD = "standard"
    PREMIUM = "premium"


class TimelinePreference(str, Enum):
    """How fast the owner wants the work done."""

    URGENT = "urgent"
    STANDARD = "standard"
    FLEXIBLE = "flexible"


# Homeowner urgency scale as stored in the canonical timeline column
URGENCY_TO_TIMELINE = {
    "high": TimelinePreference.URGENT,
    "medium": TimelinePreference.STANDARD,
    "low": TimelinePreference.FLEXIBLE,
}


# =============================================================================
# SHARED SUB-MODELS
# =============================================================================


class _Bag(BaseModel):
    """Permissive form fragment: unknown keys ignored, numbers accepted as text."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )


class Location(_Bag):
    """Structured project location."""

    country: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, alias="zipCode")

    def label(self) -> str:
        """Render as 'City, Country Zip', skipping missing parts."""
        head = ", ".join(p for p in (self.city, self.country) if p)
        return " ".join(p for p in (head, self.zip_code) if p).strip()


class PipeBoot(_Bag):
    size: Optional[str] = None
    quantity: Optional[int] = None


class TrimComponent(_Bag):
    """Fascia or gutter description."""

    size: Optional[str] = None
    type: Optional[str] = None
    condition: Optional[str] = None


class SlopeDamage(_Bag):
    """One damaged roof slope as recorded on site."""

    slope: Optional[str] = None
    damage_type: Optional[str] = Field(default=None, alias="damageType")
    severity: Optional[str] = None
    description: Optional[str] = None


class RoofSpecification(_Bag):
    """Roof details collected for every role."""

    structure_type: Optional[str] = Field(default=None, alias="structureType")
    roof_pitch: Optional[str] = Field(default=None, alias="roofPitch")
    roof_age: Optional[float] = Field(default=None, alias="roofAge")
    material_layers: List[str] = Field(default_factory=list, alias="materialLayers")
    ice_water_shield: Optional[bool] = Field(default=None, alias="iceWaterShield")
    felt: Optional[str] = None
    drip_edge: Optional[bool] = Field(default=None, alias="dripEdge")
    gutter_apron: Optional[bool] = Field(default=None, alias="gutterApron")
    pipe_boots: List[PipeBoot] = Field(default_factory=list, alias="pipeBoots")
    fascia: Optional[TrimComponent] = None
    gutter: Optional[TrimComponent] = None


# =============================================================================
# ROLE DETAILS (sum type)
# =============================================================================


class HomeownerInfo(_Bag):
    name: Optional[str] = None
    email: Optional[str] = None


class JurisdictionLocation(_Bag):
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


class HomeownerDetails(_Bag):
    homeowner_info: Optional[HomeownerInfo] = Field(default=None, alias="homeownerInfo")
    urgency: Optional[str] = None
    budget_style: Optional[str] = Field(default=None, alias="budgetStyle")
    jurisdiction_location: Optional[JurisdictionLocation] = Field(default=None, alias="jurisdictionLocation")


class LaborNeeds(_Bag):
    worker_count: Optional[str] = Field(default=None, alias="workerCount")
    steep_assist: Optional[bool] = Field(default=None, alias="steepAssist")


class ContractorDetails(_Bag):
    job_type: Optional[str] = Field(default=None, alias="jobType")
    material_preference: Optional[str] = Field(default=None, alias="materialPreference")
    labor_needs: Optional[LaborNeeds] = Field(default=None, alias="laborNeeds")
    line_items: List[str] = Field(default_factory=list, alias="lineItems")
    local_permit: Optional[bool] = Field(default=None, alias="localPermit")


class InspectorInfo(_Bag):
    name: Optional[str] = None
    license: Optional[str] = None
    contact: Optional[str] = None


class InspectorDetails(_Bag):
    inspector_info: Optional[InspectorInfo] = Field(default=None, alias="inspectorInfo")
    inspection_date: Optional[str] = Field(default=None, alias="inspectionDate")
    weather_conditions: Optional[str] = Field(default=None, alias="weatherConditions")
    access_tools: List[str] = Field(default_factory=list, alias="accessTools")
    slope_damage: List[SlopeDamage] = Field(default_factory=list, alias="slopeDamage")
    owner_notes: Optional[str] = Field(default=None, alias="ownerNotes")


class InsuranceAdjusterInfo(_Bag):
    company_name: Optional[str] = Field(default=None, alias="companyName")
    adjuster_id: Optional[str] = Field(default=None, alias="adjusterId")
    claim_types_handled: List[str] = Field(default_factory=list, alias="claimTypesHandled")
    jurisdiction: Optional[str] = None


class CoverageMapping(_Bag):
    covered: Optional[List[str]] = None
    excluded: Optional[List[str]] = None
    maintenance: Optional[List[str]] = None


class InsuranceAdjusterDetails(_Bag):
    adjuster_info: Optional[InsuranceAdjusterInfo] = Field(default=None, alias="insuranceAdjusterInfo")
    claim_number: Optional[str] = Field(default=None, alias="claimNumber")
    policyholder_name: Optional[str] = Field(default=None, alias="policyholderName")
    adjuster_name: Optional[str] = Field(default=None, alias="adjusterName")
    adjuster_contact: Optional[str] = Field(default=None, alias="adjusterContact")
    date_of_loss: Optional[str] = Field(default=None, alias="dateOfLoss")
    damage_cause: Optional[str] = Field(default=None, alias="damageCause")
    coverage_mapping: Optional[CoverageMapping] = Field(default=None, alias="coverageMapping")
    slope_damage: List[SlopeDamage] = Field(default_factory=list, alias="slopeDamage")
    weather_conditions: Optional[str] = Field(default=None, alias="weatherConditions")


RoleDetails = Union[HomeownerDetails, ContractorDetails, InspectorDetails, InsuranceAdjusterDetails]

ROLE_DETAILS_MODELS = {
    Role.HOMEOWNER: HomeownerDetails,
    Role.CONTRACTOR: ContractorDetails,
    Role.INSPECTOR: InspectorDetails,
    Role.INSURANCE_ADJUSTER: InsuranceAdjusterDetails,
}


# =============================================================================
# PROJECT REQUIREMENTS
# =============================================================================


class ProjectRequirements(BaseModel):
    """Input to the estimate pipeline; immutable for one request.

    The role is kept as the raw submitted string. Only the prompt builder
    resolves it, so an unsupported role fails there explicitly instead of
    being rejected (or defaulted) while parsing the form.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    project_type: ProjectType = Field(validation_alias=AliasChoices("projectType", "type"))
    area: float = Field(gt=0)
    location: Union[Location, str]
    material_tier: MaterialTier = Field(
        default=MaterialTier.STANDARD,
        validation_alias=AliasChoices("materialTier", "material_tier"),
    )
    timeline: TimelinePreference = TimelinePreference.STANDARD
    role: str = Field(validation_alias=AliasChoices("userRole", "role"))
    name: Optional[str] = None
    preferred_language: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("preferredLanguage", "preferred_language")
    )
    preferred_currency: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("preferredCurrency", "preferred_currency")
    )
    roof: RoofSpecification = Field(default_factory=RoofSpecification)
    details: Optional[RoleDetails] = None

    @field_validator("material_tier", mode="before")
    @classmethod
    def _default_tier(cls, value: Any) -> Any:
        return value or MaterialTier.STANDARD

    @field_validator("timeline", mode="before")
    @classmethod
    def _lenient_timeline(cls, value: Any) -> Any:
        if isinstance(value, TimelinePreference):
            return value
        key = str(value or "").strip().lower()
        if key in URGENCY_TO_TIMELINE:
            return URGENCY_TO_TIMELINE[key]
        try:
            return TimelinePreference(key)
        except ValueError:
            return TimelinePreference.STANDARD

    @property
    def resolved_role(self) -> Optional[Role]:
        return Role.resolve(self.role)

    @property
    def location_label(self) -> str:
        if isinstance(self.location, Location):
            return self.location.label()
        return self.location.strip()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ProjectRequirements":
        """Build from a flat form payload (the shape the estimate form posts).

        Roof fields and the role sub-record are lifted out of the flat dict;
        the role sub-record is only built when the role is recognized.
        """
        role = Role.resolve(payload.get("userRole", payload.get("role")))
        data = dict(payload)
        data["roof"] = RoofSpecification.model_validate(payload)
        if role is not None:
            data["details"] = ROLE_DETAILS_MODELS[role].model_validate(payload)
        return cls.model_validate(data)
