"""
System field types seeded into the field type registry.

Shared by `FieldTypeService.seed_system_field_types` and the baseline
alembic migration.
"""

from typing import Any, Dict, List

_PHONE_RULES = {"type": "string", "pattern": "^[+]?[0-9\\s\\-()]+$", "maxLength": 20}


def _entry(field_type: str, canonical_name: str, category: str, data_type: str,
           aliases: List[str], rules: Dict[str, Any], required: bool = False) -> Dict[str, Any]:
    return {
        "field_type": field_type,
        "canonical_name": canonical_name,
        "display_name_key": f"field.{canonical_name}",
        "category": category,
        "data_type": data_type,
        "is_required": required,
        "is_system": True,
        "accepted_aliases": aliases,
        "validation_rules": rules,
    }


SYSTEM_FIELD_TYPES: List[Dict[str, Any]] = [
    # Personal
    _entry("FIRST_NAME", "firstName", "PERSONAL", "STRING",
           ["first_name", "vorname", "prénom", "nombre", "nome"],
           {"type": "string", "minLength": 1, "maxLength": 100}, required=True),
    _entry("LAST_NAME", "lastName", "PERSONAL", "STRING",
           ["last_name", "nachname", "nom", "apellido", "cognome", "familienname", "surname"],
           {"type": "string", "minLength": 1, "maxLength": 100}, required=True),
    _entry("BIRTH_DATE", "birthDate", "PERSONAL", "DATE",
           ["birth_date", "geburtsdatum", "date_of_birth", "dob", "dateOfBirth", "date_naissance"],
           {"type": "string", "format": "date"}, required=True),
    _entry("GENDER", "gender", "PERSONAL", "STRING",
           ["geschlecht", "sexe", "sex", "genero"],
           {"type": "string", "enum": ["MALE", "FEMALE", "OTHER", "PREFER_NOT_TO_SAY"]}),
    _entry("GUARDIAN_FIRST_NAME", "guardianFirstName", "PERSONAL", "STRING",
           ["guardian_first_name", "erziehungsberechtigter_vorname", "legal_guardian_first"],
           {"type": "string", "maxLength": 100}),
    _entry("GUARDIAN_LAST_NAME", "guardianLastName", "PERSONAL", "STRING",
           ["guardian_last_name", "erziehungsberechtigter_nachname", "legal_guardian_last"],
           {"type": "string", "maxLength": 100}),
    _entry("GUARDIAN_RELATIONSHIP", "guardianRelationship", "PERSONAL", "STRING",
           ["relationship", "beziehung", "relation"],
           {"type": "string", "enum": ["MOTHER", "FATHER", "LEGAL_GUARDIAN", "OTHER"]}),
    # Contact
    _entry("EMAIL", "email", "CONTACT", "EMAIL",
           ["email_address", "e_mail", "mail", "emailAddress"],
           {"type": "string", "format": "email", "maxLength": 255}),
    _entry("PHONE", "phone", "CONTACT", "PHONE",
           ["phone_number", "telefon", "telephone", "phoneNumber", "tel"], _PHONE_RULES),
    _entry("MOBILE", "mobile", "CONTACT", "PHONE",
           ["mobile_number", "mobilnummer", "handy", "cell", "mobileNumber", "cellular"], _PHONE_RULES),
    _entry("STREET", "street", "CONTACT", "STRING",
           ["strasse", "address", "rue", "calle", "via", "streetAddress"],
           {"type": "string", "maxLength": 255}),
    _entry("ZIP_CODE", "zipCode", "CONTACT", "STRING",
           ["plz", "postal_code", "postalCode", "zip", "postcode", "code_postal"],
           {"type": "string", "maxLength": 10}),
    _entry("CITY", "city", "CONTACT", "STRING",
           ["stadt", "ort", "ville", "ciudad", "citta"],
           {"type": "string", "maxLength": 100}),
    _entry("COUNTRY", "country", "CONTACT", "STRING",
           ["land", "pays", "pais", "paese"],
           {"type": "string", "maxLength": 100}),
    # Insurance
    _entry("INSURANCE_TYPE", "insuranceType", "INSURANCE", "STRING",
           ["versicherungsart", "insurance", "assurance_type"],
           {"type": "string", "enum": ["SELF_INSURED", "FAMILY_INSURED"]}, required=True),
    _entry("INSURANCE_NUMBER", "insuranceNumber", "INSURANCE", "STRING",
           ["versicherungsnummer", "insurance_id", "policy_number"],
           {"type": "string", "maxLength": 50}),
    _entry("INSURANCE_COMPANY", "insuranceCompany", "INSURANCE", "STRING",
           ["versicherung", "insurance_provider", "krankenkasse"],
           {"type": "string", "maxLength": 255}),
    # Medical
    _entry("MEDICAL_HISTORY", "medicalHistory", "MEDICAL", "TEXT",
           ["krankengeschichte", "medical_conditions", "health_history", "anamnese"],
           {"type": "string", "maxLength": 5000}),
    _entry("ALLERGIES", "allergies", "MEDICAL", "TEXT",
           ["allergien", "allergie", "allergy"],
           {"type": "string", "maxLength": 2000}),
    _entry("MEDICATIONS", "medications", "MEDICAL", "TEXT",
           ["medikamente", "medicine", "drugs", "current_medications"],
           {"type": "string", "maxLength": 2000}),
    _entry("CURRENT_COMPLAINTS", "currentComplaints", "MEDICAL", "TEXT",
           ["beschwerden", "complaints", "symptoms", "chief_complaint"],
           {"type": "string", "maxLength": 2000}),
    # Signature & consent
    _entry("PATIENT_SIGNATURE", "patientSignature", "CONSENT", "SIGNATURE",
           ["signature", "unterschrift", "sig", "patient_sig"],
           {"type": "string", "format": "signature"}),
    _entry("CONSENT_DATA_PROCESSING", "dataProcessingConsent", "CONSENT", "BOOLEAN",
           ["data_consent", "datenschutz", "privacy_consent", "gdpr_consent"],
           {"type": "boolean"}, required=True),
    _entry("CONSENT_TREATMENT", "treatmentConsent", "CONSENT", "BOOLEAN",
           ["treatment_consent", "behandlungseinwilligung", "consent"],
           {"type": "boolean"}),
]
