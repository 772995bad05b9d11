"""Enum types shared by the device-side draft store and the record store."""

import enum


# --- Identity ---

class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SURVEYOR = "surveyor"


# --- Survey forms ---

class DraftType(str, enum.Enum):
    APJ_PROPOSE = "apj_propose"
    EXISTING = "existing"


class SurveyCollection(str, enum.Enum):
    APJ_PROPOSE_TIANG = "APJ_Propose_Tiang"
    SURVEY_EXISTING_REPORT = "Survey_Existing_Report"


class BlobNamespace(str, enum.Enum):
    SURVEY_APJ_PROPOSE = "survey-apj-propose"
    SURVEY_EXISTING = "survey-existing"


# Draft type -> remote collection for the structured record
COLLECTION_BY_DRAFT_TYPE: dict[DraftType, SurveyCollection] = {
    DraftType.APJ_PROPOSE: SurveyCollection.APJ_PROPOSE_TIANG,
    DraftType.EXISTING: SurveyCollection.SURVEY_EXISTING_REPORT,
}

# Draft type -> folder namespace for uploaded photos
NAMESPACE_BY_DRAFT_TYPE: dict[DraftType, BlobNamespace] = {
    DraftType.APJ_PROPOSE: BlobNamespace.SURVEY_APJ_PROPOSE,
    DraftType.EXISTING: BlobNamespace.SURVEY_EXISTING,
}


# --- Form lifecycle ---

class FormState(str, enum.Enum):
    NEW = "new"
    DRAFTED = "drafted"
    SYNCED = "synced"
