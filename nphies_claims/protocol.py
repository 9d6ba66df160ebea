"""NPHIES protocol constants.

Every profile URL, extension URL, code system URI, event code and display
table used by the builders and parsers lives here, so a protocol revision
is a change to this module and ``PROTOCOL_VERSION`` only.
"""

from __future__ import annotations

PROTOCOL_VERSION = "1.0.0"

STRUCTURE_DEFINITION_BASE = "http://nphies.sa/fhir/ksa/nphies-fs/StructureDefinition/"
CODE_SYSTEM_BASE = "http://nphies.sa/terminology/CodeSystem/"
HL7_CODE_SYSTEM_BASE = "http://terminology.hl7.org/CodeSystem/"

NPHIES_ENDPOINT = "http://nphies.sa"
PROVIDER_LICENSE_SYSTEM = "http://nphies.sa/license/provider-license"
PAYER_LICENSE_SYSTEM = "http://nphies.sa/license/payer-license"
NPHIES_LICENSE_SYSTEM = "http://nphies.sa/license/nphies-license"
PRACTITIONER_LICENSE_SYSTEM = "http://nphies.sa/license/practitioner-license"
NPHIES_LICENSE_VALUE = "nphies"

UCUM_SYSTEM = "http://unitsofmeasure.org"
ICD10_AM_SYSTEM = "http://hl7.org/fhir/sid/icd-10-am"
ICD10_SYSTEM = "http://hl7.org/fhir/sid/icd-10"


def profile_url(name: str) -> str:
    """Return the versioned profile URL for a structure definition name."""
    return f"{STRUCTURE_DEFINITION_BASE}{name}|{PROTOCOL_VERSION}"


def extension_url(name: str) -> str:
    """Return the extension URL for ``extension-<name>``."""
    return f"{STRUCTURE_DEFINITION_BASE}extension-{name}"


def code_system(name: str) -> str:
    return f"{CODE_SYSTEM_BASE}{name}"


def hl7_code_system(name: str) -> str:
    return f"{HL7_CODE_SYSTEM_BASE}{name}"


# Message events
EVENT_CLAIM_REQUEST = "claim-request"
EVENT_CLAIM_RESPONSE = "claim-response"
EVENT_BATCH_RESPONSE = "batch-response"
EVENT_POLL_REQUEST = "poll-request"
MESSAGE_EVENTS_SYSTEM = code_system("ksa-message-events")

# Claim profiles keyed by canonical claim type
CLAIM_PROFILES = {
    "institutional": profile_url("institutional-claim"),
    "professional": profile_url("professional-claim"),
    "pharmacy": profile_url("pharmacy-claim"),
    "oral": profile_url("oral-claim"),
    "vision": profile_url("vision-claim"),
}

BUNDLE_PROFILE = profile_url("bundle")
MESSAGE_HEADER_PROFILE = profile_url("message-header")
ENCOUNTER_PROFILE = profile_url("encounter")
COVERAGE_PROFILE = profile_url("coverage")
PATIENT_PROFILE = profile_url("patient")
PRACTITIONER_PROFILE = profile_url("practitioner")
PROVIDER_ORGANIZATION_PROFILE = profile_url("provider-organization")
INSURER_ORGANIZATION_PROFILE = profile_url("insurer-organization")
POLL_REQUEST_PROFILE = profile_url("poll-request")

# Claim-level extensions
EXT_ACCOUNTING_PERIOD = extension_url("accountingPeriod")
EXT_ENCOUNTER = extension_url("encounter")
EXT_ELIGIBILITY_OFFLINE_REFERENCE = extension_url("eligibility-offline-reference")
EXT_ELIGIBILITY_OFFLINE_DATE = extension_url("eligibility-offline-date")
EXT_EPISODE = extension_url("episode")
EXT_NEWBORN = extension_url("newborn")
EXT_CONDITION_ONSET = extension_url("condition-onset")

# Item-level extensions
EXT_PACKAGE = extension_url("package")
EXT_TAX = extension_url("tax")
EXT_PATIENT_SHARE = extension_url("patient-share")
EXT_PATIENT_INVOICE = extension_url("patientInvoice")
EXT_MATERNITY = extension_url("maternity")

# Encounter hospitalization extensions
EXT_ADMISSION_SPECIALTY = extension_url("admissionSpecialty")
EXT_INTENDED_LENGTH_OF_STAY = extension_url("intendedLengthOfStay")
EXT_DISCHARGE_SPECIALTY = extension_url("dischargeSpecialty")

# Batch extensions
BATCH_EXTENSION_MARKER = "extension-batch-"
EXT_BATCH_IDENTIFIER = extension_url("batch-identifier")
EXT_BATCH_NUMBER = extension_url("batch-number")
EXT_BATCH_PERIOD = extension_url("batch-period")
BATCH_IDENTIFIER_SYSTEM = "http://provider.com/batch"

# Entity extensions
EXT_OCCUPATION = extension_url("occupation")
EXT_IDENTIFIER_COUNTRY = extension_url("identifier-country")
EXT_ADMINISTRATIVE_GENDER = extension_url("ksa-administrative-gender")
EXT_PROVIDER_TYPE = extension_url("provider-type")

# Response extensions
EXT_ADJUDICATION_OUTCOME_MARKER = "extension-adjudication-outcome"
EXT_BATCH_IDENTIFIER_MARKER = "extension-batch-identifier"
EXT_BATCH_NUMBER_MARKER = "extension-batch-number"
NPHIES_GENERATED_TAG = "nphies-generated"

# Code systems
CLAIM_TYPE_SYSTEM = hl7_code_system("claim-type")
CLAIM_SUBTYPE_SYSTEM = code_system("claim-subtype")
PROCESS_PRIORITY_SYSTEM = hl7_code_system("processpriority")
PAYEE_TYPE_SYSTEM = hl7_code_system("payeetype")
CARE_TEAM_ROLE_SYSTEM = hl7_code_system("claimcareteamrole")
PRACTICE_CODES_SYSTEM = code_system("practice-codes")
DIAGNOSIS_TYPE_SYSTEM = code_system("diagnosis-type")
DIAGNOSIS_ON_ADMISSION_SYSTEM = code_system("diagnosis-on-admission")
CONDITION_ONSET_SYSTEM = code_system("condition-onset")
PROCEDURES_SYSTEM = code_system("procedures")
ENCOUNTER_CLASS_SYSTEM = hl7_code_system("v3-ActCode")
SERVICE_TYPE_SYSTEM = code_system("service-type")
ADMIT_SOURCE_SYSTEM = code_system("admit-source")
DISCHARGE_DISPOSITION_SYSTEM = code_system("discharge-disposition")
INTENDED_LENGTH_OF_STAY_SYSTEM = code_system("intended-length-of-stay")
SUPPORTING_INFO_CATEGORY_SYSTEM = code_system("claim-information-category")
SUPPORTING_INFO_CODE_SYSTEM = code_system("supporting-info-code")
INVESTIGATION_RESULT_SYSTEM = code_system("investigation-result")
COVERAGE_TYPE_SYSTEM = code_system("coverage-type")
SUBSCRIBER_RELATIONSHIP_SYSTEM = hl7_code_system("subscriber-relationship")
COVERAGE_CLASS_SYSTEM = hl7_code_system("coverage-class")
IDENTIFIER_TYPE_SYSTEM = hl7_code_system("v2-0203")
MARITAL_STATUS_SYSTEM = hl7_code_system("v3-MaritalStatus")
OCCUPATION_SYSTEM = code_system("occupation")
ADMINISTRATIVE_GENDER_SYSTEM = code_system("ksa-administrative-gender")
PROVIDER_TYPE_SYSTEM = code_system("provider-type")
ORGANIZATION_TYPE_SYSTEM = code_system("organization-type")
TASK_CODE_SYSTEM = code_system("task-code")
TASK_INPUT_TYPE_SYSTEM = code_system("task-input-type")
COUNTRY_SYSTEM = "urn:iso:std:iso:3166"

# Patient identifier types
PATIENT_IDENTIFIERS = {
    "national_id": ("NI", "National Identifier", "http://nphies.sa/identifier/nationalid"),
    "iqama": ("PRC", "Permanent Resident Card", "http://nphies.sa/identifier/iqama"),
    "passport": ("PPN", "Passport Number", "http://nphies.sa/identifier/passportnumber"),
    "mrn": ("MR", "Medical Record Number", "http://provider.com/identifier/mrn"),
}

MARITAL_STATUS_CODES = {
    "married": "M",
    "single": "S",
    "divorced": "D",
    "widowed": "W",
    "unknown": "U",
}

PROVIDER_TYPE_CODES = {
    "hospital": "1",
    "polyclinic": "2",
    "pharmacy": "3",
    "optical": "4",
    "optical_shop": "4",
    "clinic": "5",
    "dental": "5",
    "dental_clinic": "5",
    "vision": "5",
    "vision_clinic": "5",
}

PROVIDER_TYPE_DISPLAYS = {
    "1": "Hospital",
    "2": "Polyclinic",
    "3": "Pharmacy",
    "4": "Optical Shop",
    "5": "Clinic",
}

ENCOUNTER_CLASS_CODES = {
    "ambulatory": ("AMB", "ambulatory"),
    "outpatient": ("AMB", "ambulatory"),
    "emergency": ("EMER", "emergency"),
    "home": ("HH", "home health"),
    "inpatient": ("IMP", "inpatient encounter"),
    "daycase": ("SS", "short stay"),
    "telemedicine": ("VR", "virtual"),
}

COVERAGE_TYPE_DISPLAYS = {
    "EHCPOL": "Extended healthcare",
    "PUBLICPOL": "Public healthcare",
}

RELATIONSHIP_DISPLAYS = {
    "self": "Self",
    "spouse": "Spouse",
    "child": "Child",
    "parent": "Parent",
}

SERVICE_TYPE_DISPLAYS = {
    "acute-care": "Acute Care",
    "sub-acute-care": "Sub-Acute Care",
}

PRACTICE_CODE_DISPLAYS = {
    "08.00": "Internal Medicine",
    "08.26": "General Medicine",
    "11.09": "Ophthalmology",
    "19.08": "General Surgery",
}
DEFAULT_PRACTICE_DISPLAY = "Healthcare Professional"

ADMIT_SOURCE_DISPLAYS = {
    "IA": "Immediate Admission",
    "EPH": "Emergency Admission by referral from private hospital",
    "EER": "Admission from hospital ER",
    "EWIS": "Elective waiting list admission insurance coverage Scheme",
    "EPPHC": "Emergency Admission by referral from private primary healthcare center",
    "EOP": "Emergency Admission from hospital outpatient",
    "PMBA": "Planned Maternity Birth Admission",
    "EGGH": "Emergency Admission by referral from general government hospital",
    "PVAMB": "Private ambulance",
    "WKIN": "Walk-in",
    "EMBA": "Emergency Maternity Birth Admission",
    "EWSS": "Elective waiting list admission self-payment Scheme",
    "Others": "Others",
    "EWGS": "Elective waiting list admission government free Scheme",
    "EIC": "Emergency Admission by insurance company",
    "EGPHC": "Emergency Admission by referral from government primary healthcare center",
    "FMLYM": "Family member",
    "AA": "Already admitted",
    "RECR": "Red crescent",
    "AAIC": "Already admitted- insurance consumed",
}

DISCHARGE_DISPOSITION_DISPLAYS = {
    "home": "Home",
    "other-hcf": "Other healthcare facility",
    "hosp": "Hospitalization",
    "long": "Long-term care",
    "aadvice": "Left against advice",
    "exp": "Expired",
    "psy": "Psychiatric hospital",
    "rehab": "Rehabilitation",
    "snf": "Skilled nursing facility",
    "oth": "Other",
}

INTENDED_LENGTH_OF_STAY_DISPLAYS = {
    "ISD": "Intended same day",
    "IO": "Intended overnight",
}

DIAGNOSIS_PRINCIPAL = "principal"
DIAGNOSIS_SECONDARY = "secondary"

# Supporting info
SUPPORTING_INFO_CATEGORY_ALIASES = {
    "estimated-length-of-stay": "estimated-Length-of-Stay",
}

SUPPORTING_INFO_CODE_SYSTEMS = {
    "chief-complaint": "http://snomed.info/sct",
    "investigation-result": INVESTIGATION_RESULT_SYSTEM,
    "onset": ICD10_AM_SYSTEM,
}

UCUM_CODES = {
    "mmHg": "mm[Hg]",
    "mm[Hg]": "mm[Hg]",
    "cm": "cm",
    "kg": "kg",
    "/min": "/min",
    "bpm": "/min",
    "Cel": "Cel",
    "celsius": "Cel",
    "%": "%",
    "d": "d",
    "day": "d",
    "h": "h",
}

INVESTIGATION_RESULT_CATEGORY = "investigation-result"
INVESTIGATION_NOT_PERFORMED = ("INP", "Investigation(s) not performed")
BIRTH_WEIGHT_CATEGORY = "birth-weight"

# Fixed placeholders
CURRENCY = "SAR"
DEFAULT_COUNTRY = ("SAU", "Saudi Arabia")
DEFAULT_CITY = "Riyadh"
DEFAULT_PRACTICE_CODE = "08.00"
VISION_PRACTICE_CODE = "11.09"
DEFAULT_ADMIT_SOURCE = "WKIN"
DEFAULT_DISCHARGE_DISPOSITION = "home"
DEFAULT_SERVICE_TYPE = "acute-care"
DEFAULT_ENCOUNTER_CLASS = "daycase"
DEFAULT_CONDITION_ONSET = "NR"
DEFAULT_OCCUPATION = "business"
DEFAULT_COVERAGE_TYPE = "EHCPOL"
DEFAULT_RELATIONSHIP = "self"
