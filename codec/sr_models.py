from __future__ import annotations

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ValueType(str, Enum):
    CONTAINER = "CONTAINER"
    TEXT = "TEXT"
    UIDREF = "UIDREF"
    NUM = "NUM"
    SCOORD = "SCOORD"
    SCOORD3D = "SCOORD3D"
    IMAGE = "IMAGE"


# the report level ValueType field shadows the enum name inside StructuredReport
SRValueType = ValueType


class RelationshipType(str, Enum):
    CONTAINS = "CONTAINS"
    HAS_PROPERTIES = "HAS PROPERTIES"
    SELECTED_FROM = "SELECTED FROM"


class GraphicType(str, Enum):
    POINT = "POINT"
    MULTIPOINT = "MULTIPOINT"
    POLYLINE = "POLYLINE"
    CIRCLE = "CIRCLE"
    ELLIPSE = "ELLIPSE"


# expected number of coordinate pairs, None for "one or more"
_GRAPHIC_PAIRS = {
    GraphicType.POINT: 1,
    GraphicType.MULTIPOINT: None,
    GraphicType.POLYLINE: None,
    GraphicType.CIRCLE: 2,
    GraphicType.ELLIPSE: 4,
}


def _finite_list(v: list[float]) -> list[float]:
    out = []
    for x in v:
        if not isinstance(x, (int, float)) or not math.isfinite(float(x)):
            raise ValueError("graphic data must be finite numbers")
        out.append(float(x))
    return out


class CodedConcept(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    value: str
    scheme_designator: str
    meaning: str

    def matches(self, other: Optional[CodedConcept]) -> bool:
        return other is not None and self.value == other.value and self.scheme_designator == other.scheme_designator


class SpatialCoordinate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    graphic_type: GraphicType
    graphic_data: list[float]

    @field_validator("graphic_data")
    @classmethod
    def _finite(cls, v):
        return _finite_list(v)

    @model_validator(mode="after")
    def _check_count(self):
        n = len(self.graphic_data)
        if n == 0 or n % 2 != 0:
            raise ValueError("graphic data must hold (x, y) pairs")
        pairs = _GRAPHIC_PAIRS[self.graphic_type]
        if pairs is not None and n != 2 * pairs:
            raise ValueError(f"{self.graphic_type.value} needs {pairs} points, got {n // 2}")
        return self


class SpatialCoordinate3D(BaseModel):
    model_config = ConfigDict(extra="forbid")

    graphic_type: GraphicType
    graphic_data: list[float]
    referenced_frame_of_reference_uid: Optional[str] = None

    @field_validator("graphic_data")
    @classmethod
    def _finite(cls, v):
        return _finite_list(v)

    @model_validator(mode="after")
    def _check_count(self):
        n = len(self.graphic_data)
        if n == 0 or n % 3 != 0:
            raise ValueError("3D graphic data must hold (x, y, z) triplets")
        return self


class ImageReference(BaseModel):
    model_config = ConfigDict(extra="forbid")

    referenced_sop_class_uid: str = ""
    referenced_sop_instance_uid: Optional[str] = None
    referenced_frame_number: Optional[int] = None


class MeasuredValue(BaseModel):
    model_config = ConfigDict(extra="forbid")

    numeric_value: float
    measurement_units_code: CodedConcept


class ContentItem(BaseModel):
    """One node of the report content tree; the field matching value_type holds the value."""

    model_config = ConfigDict(extra="forbid")

    value_type: ValueType
    relationship_type: Optional[RelationshipType] = None
    concept_name_code: Optional[CodedConcept] = None
    text_value: Optional[str] = None
    uid: Optional[str] = None
    measured_value: Optional[MeasuredValue] = None
    scoord: Optional[SpatialCoordinate] = None
    scoord3d: Optional[SpatialCoordinate3D] = None
    image: Optional[ImageReference] = None
    content_sequence: list[ContentItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _value_present(self):
        required = {
            ValueType.UIDREF: self.uid,
            ValueType.NUM: self.measured_value,
            ValueType.SCOORD: self.scoord,
            ValueType.SCOORD3D: self.scoord3d,
            ValueType.IMAGE: self.image,
        }
        if self.value_type in required and required[self.value_type] is None:
            raise ValueError(f"{self.value_type.value} content item has no value")
        return self


class ReferencedSeries(BaseModel):
    model_config = ConfigDict(extra="allow")

    SeriesInstanceUID: str


class StructuredReport(BaseModel):
    """Top level report: DICOM keyword tags plus the root content container."""

    model_config = ConfigDict(extra="allow")

    SOPClassUID: Optional[str] = None
    StudyInstanceUID: Optional[str] = None
    Modality: Optional[str] = None
    PatientName: Optional[str] = None
    PatientID: Optional[str] = None
    PatientBirthDate: Optional[str] = None
    PatientSex: Optional[str] = None
    ReferencedSeriesSequence: list[ReferencedSeries] = Field(default_factory=list)
    CompletionFlag: Optional[str] = None
    VerificationFlag: Optional[str] = None
    ContentDate: Optional[str] = None
    ContentTime: Optional[str] = None
    ValueType: Optional[SRValueType] = None
    ConceptNameCodeSequence: Optional[CodedConcept] = None
    ContentSequence: list[ContentItem] = Field(default_factory=list)


def code(value: str, scheme: str, meaning: str) -> CodedConcept:
    return CodedConcept(value=value, scheme_designator=scheme, meaning=meaning)


PRIVATE_SCHEME = "99ANNOT"

MEASUREMENT_GROUP = code("125007", "DCM", "Measurement Group")
IMAGE_REGION = code("111030", "DCM", "Image Region")
PATH = code("121055", "DCM", "Path")
SOURCE_IMAGE = code("121112", "DCM", "Source of Measurement")
TRACKING_IDENTIFIER = code("112039", "DCM", "Tracking Identifier")
SHORT_LABEL = code("125309", "DCM", "Short label")
REFERENCE_POINTS = code("RP", PRIVATE_SCHEME, "Reference Points")
REFERENCE_GEOMETRY = code("RG", PRIVATE_SCHEME, "Reference Geometry")
COLOUR = code("COL", PRIVATE_SCHEME, "Colour")

QUANTIFICATION_CODES: dict[str, CodedConcept] = {
    "length": code("410668003", "SCT", "Length"),
    "surface": code("42798000", "SCT", "Area"),
    "min": code("255605001", "SCT", "Minimum"),
    "max": code("56851009", "SCT", "Maximum"),
    "mean": code("373098007", "SCT", "Mean"),
    "stdDev": code("386136009", "SCT", "Standard deviation"),
    "median": code("MED", PRIVATE_SCHEME, "Median"),
    "p25": code("P25", PRIVATE_SCHEME, "25th percentile"),
    "p75": code("P75", PRIVATE_SCHEME, "75th percentile"),
    "angle": code("ANG", PRIVATE_SCHEME, "Angle"),
}

# quantification unit -> UCUM code value
UNIT_TO_UCUM = {"degree": "deg", "pixel": "{pixel}"}
UCUM_TO_UNIT = {v: k for k, v in UNIT_TO_UCUM.items()}
NO_UNITS = code("1", "UCUM", "no units")


def get_quantification_name(concept: Optional[CodedConcept]) -> Optional[str]:
    for name, c in QUANTIFICATION_CODES.items():
        if c.matches(concept):
            return name
    return None


def get_unit_code(unit: Optional[str]) -> CodedConcept:
    if not unit:
        return NO_UNITS
    ucum = UNIT_TO_UCUM.get(unit, unit)
    return code(ucum, "UCUM", unit)


def get_unit(concept: CodedConcept) -> Optional[str]:
    if concept.matches(NO_UNITS):
        return None
    return UCUM_TO_UNIT.get(concept.value, concept.value)
