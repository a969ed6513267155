"""
Submission document rendering.

Builds a printable document from a stored submission: the definition's
fields in layout order with human-readable values, grouped by field type
category, followed by the signatures captured around the submission time.
The HTML is rendered with Jinja2 and rasterized to PDF; the PDF is hashed,
stored and recorded on the submission.
"""

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol, Tuple

from jinja2 import Environment
from sqlalchemy.orm import Session

from core.config import DEFAULT_FORM_LANGUAGE, PDF_STORAGE_DIR, SIGNATURE_MATCH_WINDOW_MINUTES
from core.constants import DOCUMENT_CATEGORY_ORDER, SUPPORTED_LANGUAGES, UNMAPPED_CATEGORY, SupportedLanguage
from core.exceptions import DocumentRenderingError
from models import FormDefinition, FormSubmission, Patient, Signature
from services.field_type_service import FieldTypeService
from services.form_markup_service import resolve_field_order, resolve_label, resolve_options, schema_properties
from services.form_submission_service import FormSubmissionService
from services.form_translation_service import FormTranslationService
from services.signature_service import SignatureService, is_signature_value
from utils.datetime_utils import ensure_utc, format_date_for_language, parse_iso_date, utc_now
from utils.file_storage import read_file, sanitize_filename_part, save_file
from utils.template_env import create_template_environment

logger = logging.getLogger(__name__)

EMPTY_VALUE = "-"
SELECTED_MARK = "(X)"
UNSELECTED_MARK = "( )"
MARKER_SEPARATOR = "   "

# Yes/No labels of the boolean marker
BOOLEAN_LABELS: Dict[str, Tuple[str, str]] = {
    "de": ("Ja", "Nein"),
    "en": ("Yes", "No"),
    "ar": ("نعم", "لا"),
    "ru": ("Да", "Нет"),
}

# Field names containing one of these are consent checkboxes, shown elsewhere
CONSENT_TOKENS = (
    "consent",
    "gdpr",
    "privacy",
    "dsgvo",
    "einwilligung",
    "datenschutz",
    "zustimmung",
    "موافقة",
    "خصوصية",
    "согласие",
    "конфиденциальн",
)

# Patient attribute -> snapshot field names it overrides (compared case-insensitively)
PATIENT_FIELD_SYNONYMS: List[Tuple[str, Tuple[str, ...]]] = [
    ("first_name", ("firstName", "first_name", "firstname", "vorname")),
    ("last_name", ("lastName", "last_name", "lastname", "nachname", "familienname")),
    ("birth_date", ("birthDate", "birth_date", "birthdate", "geburtsdatum", "dateOfBirth")),
    ("email_address", ("email", "emailAddress", "email_address", "e-mail")),
    ("phone_number", ("phone", "phoneNumber", "phone_number", "telefon")),
    ("street", ("street", "strasse", "address")),
    ("city", ("city", "stadt")),
    ("zip_code", ("zipCode", "zip_code", "zip", "plz", "postalCode")),
]

DOCUMENT_TEXTS: Dict[str, Dict[str, str]] = {
    "de": {
        "patient": "Patient", "birth_date": "Geburtsdatum", "submitted_at": "Eingereicht am",
        "version": "Version", "signatures": "Unterschriften", "signer": "Unterzeichner",
        "signed_at": "Unterschrieben am", "hash": "Prüfsumme", "generated_at": "Erstellt am",
        "PERSONAL": "Persönliche Daten", "CONTACT": "Kontaktdaten", "INSURANCE": "Versicherung",
        "MEDICAL": "Medizinische Angaben", "CUSTOM": "Weitere Angaben", "OTHER": "Sonstiges",
    },
    "en": {
        "patient": "Patient", "birth_date": "Birth date", "submitted_at": "Submitted at",
        "version": "Version", "signatures": "Signatures", "signer": "Signer",
        "signed_at": "Signed at", "hash": "Checksum", "generated_at": "Generated at",
        "PERSONAL": "Personal information", "CONTACT": "Contact details", "INSURANCE": "Insurance",
        "MEDICAL": "Medical information", "CUSTOM": "Additional information", "OTHER": "Other",
    },
    "ar": {
        "patient": "المريض", "birth_date": "تاريخ الميلاد", "submitted_at": "تاريخ الإرسال",
        "version": "الإصدار", "signatures": "التوقيعات", "signer": "الموقّع",
        "signed_at": "تاريخ التوقيع", "hash": "المجموع الاختباري", "generated_at": "تاريخ الإنشاء",
        "PERSONAL": "البيانات الشخصية", "CONTACT": "بيانات الاتصال", "INSURANCE": "التأمين",
        "MEDICAL": "المعلومات الطبية", "CUSTOM": "معلومات إضافية", "OTHER": "أخرى",
    },
    "ru": {
        "patient": "Пациент", "birth_date": "Дата рождения", "submitted_at": "Дата отправки",
        "version": "Версия", "signatures": "Подписи", "signer": "Подписант",
        "signed_at": "Дата подписи", "hash": "Контрольная сумма", "generated_at": "Создано",
        "PERSONAL": "Личные данные", "CONTACT": "Контактные данные", "INSURANCE": "Страхование",
        "MEDICAL": "Медицинские сведения", "CUSTOM": "Дополнительные сведения", "OTHER": "Прочее",
    },
}

_TRUE_STRINGS = {"true", "yes", "1", "on", "ja"}


class Rasterizer(Protocol):
    def html_to_pdf(self, html: str, metadata: Optional[Dict[str, Any]] = None) -> bytes:
        ...


@dataclass
class DocumentField:
    name: str
    label: str
    value: str
    items: List[str] = field(default_factory=list)


@dataclass
class DocumentSection:
    category: str
    title: str
    fields: List[DocumentField] = field(default_factory=list)


@dataclass
class DocumentSignature:
    field_name: Optional[str]
    signer_name: Optional[str]
    signature_hash: str
    signed_at: Optional[datetime]
    image_data_url: str
    verified: bool


@dataclass
class SubmissionDocument:
    """Everything the document template needs, already formatted."""
    title: str
    language: SupportedLanguage
    submission_id: int
    submitted_at: Optional[datetime]
    form_version: Optional[str]
    patient_name: str
    patient_birth_date: str
    texts: Dict[str, str]
    sections: List[DocumentSection] = field(default_factory=list)
    signatures: List[DocumentSignature] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utc_now)


@dataclass
class GeneratedDocument:
    submission: FormSubmission
    filename: str
    content: bytes


def is_consent_field(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in CONSENT_TOKENS)


def _is_empty(value: Any) -> bool:
    return value is None or value == [] or (isinstance(value, str) and not value.strip())


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def format_boolean(value: Any, language: str) -> str:
    """'(X) Ja   ( ) Nein' for true, '( ) Ja   (X) Nein' for false (German)."""
    yes, no = BOOLEAN_LABELS.get(language, BOOLEAN_LABELS["en"])
    selected = _as_bool(value)
    return MARKER_SEPARATOR.join([
        f"{SELECTED_MARK if selected else UNSELECTED_MARK} {yes}",
        f"{UNSELECTED_MARK if selected else SELECTED_MARK} {no}",
    ])


def format_field_value(
    name: str,
    prop: Dict[str, Any],
    value: Any,
    language: str,
    widget: Optional[str] = None,
    bundle: Optional[Dict[str, Any]] = None,
) -> DocumentField:
    """Format one submitted value by its declared type. The label is left empty for the caller."""
    declared = prop.get("type")

    if declared == "boolean":
        text = EMPTY_VALUE if value is None else format_boolean(value, language)
        return DocumentField(name=name, label="", value=text)

    if _is_empty(value):
        return DocumentField(name=name, label="", value=EMPTY_VALUE)

    if declared == "array" or isinstance(value, list):
        item_schema = prop.get("items") if isinstance(prop.get("items"), dict) else {}
        labels = {option.value: option.label for option in resolve_options(name, item_schema, bundle)}
        chosen = value if isinstance(value, list) else [value]
        items = [labels.get(str(item), str(item)) for item in chosen]
        return DocumentField(
            name=name, label="", value=", ".join(items), items=[f"{SELECTED_MARK} {item}" for item in items]
        )

    if prop.get("enum"):
        options = resolve_options(name, prop, bundle)
        if widget == "radio":
            marked = [
                f"{SELECTED_MARK if option.value == str(value) else UNSELECTED_MARK} {option.label}"
                for option in options
            ]
            return DocumentField(name=name, label="", value=MARKER_SEPARATOR.join(marked))
        label = next((option.label for option in options if option.value == str(value)), str(value))
        return DocumentField(name=name, label="", value=label)

    if prop.get("format") == "date":
        parsed = parse_iso_date(value)
        text = format_date_for_language(parsed, language) if parsed else str(value)
        return DocumentField(name=name, label="", value=text)

    return DocumentField(name=name, label="", value=str(value).strip())


def merge_patient_data(snapshot: Dict[str, Any], patient: Optional[Patient], field_names: List[str]) -> Dict[str, Any]:
    """
    Overlay patient attributes on the submitted values.

    Every snapshot or schema field whose name matches a synonym of a patient
    attribute takes the attribute's value. Blank attributes are not merged.
    """
    merged = dict(snapshot)
    if patient is None:
        return merged

    candidates = list(dict.fromkeys(list(merged) + field_names))
    for attribute, synonyms in PATIENT_FIELD_SYNONYMS:
        value = getattr(patient, attribute, None)
        if _is_empty(value):
            continue
        lowered = {synonym.lower() for synonym in synonyms}
        for key in candidates:
            if key.strip().lower() in lowered:
                merged[key] = value
    return merged


def _lookup(values: Dict[str, Any], name: str) -> Any:
    if name in values:
        return values[name]
    lowered = name.lower()
    for key, value in values.items():
        if key.strip().lower() == lowered:
            return value
    return None


def document_filename(
    definition: FormDefinition,
    patient: Optional[Patient],
    submitted_at: Optional[datetime],
    submission_id: Optional[int] = None,
) -> str:
    """
    '{form}_{last}_{first}_{YYYYMMDD}_{id}.pdf' with every part sanitized.

    The submission id keeps same-day submissions of one patient apart in storage.
    """
    stamp = (ensure_utc(submitted_at) or utc_now()).strftime("%Y%m%d")
    parts = [
        sanitize_filename_part(definition.name, "form"),
        sanitize_filename_part(patient.last_name if patient else None),
        sanitize_filename_part(patient.first_name if patient else None),
        stamp,
    ]
    if submission_id is not None:
        parts.append(str(submission_id))
    return "_".join(parts) + ".pdf"


class FormDocumentService:
    """
    Service for rendering submissions into HTML and PDF documents.
    """

    def __init__(
        self,
        env: Optional[Environment] = None,
        rasterizer: Optional[Rasterizer] = None,
        storage_dir: Optional[str] = None,
    ):
        self.env = env or create_template_environment()
        self._rasterizer = rasterizer
        self.storage_dir = storage_dir or PDF_STORAGE_DIR

    @property
    def rasterizer(self) -> Rasterizer:
        if self._rasterizer is None:
            # WeasyPrint needs system libraries, only load it when a PDF is requested
            from services.pdf_service import PDFService
            self._rasterizer = PDFService()
        return self._rasterizer

    @staticmethod
    def build_sections(
        db: Session,
        definition: FormDefinition,
        values: Dict[str, Any],
        language: str,
        bundle: Optional[Dict[str, Any]] = None,
    ) -> List[DocumentSection]:
        """Formatted fields in layout order, grouped by field type category in fixed order."""
        texts = DOCUMENT_TEXTS.get(language, DOCUMENT_TEXTS["en"])
        properties = schema_properties(definition.schema)
        categories = {
            name.strip(): field_type.category
            for name, field_type in FieldTypeService.get_mapped_fields(db, definition.field_mappings).items()
        }

        grouped: Dict[str, List[DocumentField]] = {}
        for name in resolve_field_order(definition.schema, definition.ui_schema):
            prop = properties[name]
            hints = (definition.ui_schema or {}).get(name)
            hints = hints if isinstance(hints, dict) else {}
            if prop.get("format") == "signature" or hints.get("ui:widget") == "signature":
                continue
            if is_consent_field(name):
                continue
            value = _lookup(values, name)
            if is_signature_value(value):
                continue

            formatted = format_field_value(name, prop, value, language, hints.get("ui:widget"), bundle)
            formatted.label = resolve_label(name, prop, bundle)

            category = categories.get(name)
            if category not in DOCUMENT_CATEGORY_ORDER:
                category = UNMAPPED_CATEGORY
            grouped.setdefault(category, []).append(formatted)

        return [
            DocumentSection(category=category, title=texts[category], fields=grouped[category])
            for category in DOCUMENT_CATEGORY_ORDER + [UNMAPPED_CATEGORY]
            if grouped.get(category)
        ]

    @staticmethod
    def matching_signatures(db: Session, submission: FormSubmission) -> List[Signature]:
        """Signatures of the submission's patient captured within the match window around the submission."""
        submitted_at = ensure_utc(submission.submission_date)
        if submitted_at is None:
            return []
        window = timedelta(minutes=SIGNATURE_MATCH_WINDOW_MINUTES)
        return SignatureService.list_for_patient_between(
            db, submission.patient_id, submitted_at - window, submitted_at + window
        )

    def build_document(self, db: Session, submission: FormSubmission) -> SubmissionDocument:
        definition = submission.form_definition
        patient = submission.patient
        lang = SUPPORTED_LANGUAGES.get(submission.form_language) or SUPPORTED_LANGUAGES[DEFAULT_FORM_LANGUAGE]
        bundle = FormTranslationService.get_bundle(db, definition.id, lang.code)

        field_names = list(schema_properties(definition.schema))
        values = merge_patient_data(submission.form_data_snapshot or {}, patient, field_names)

        signatures = [
            DocumentSignature(
                field_name=signature.field_name,
                signer_name=signature.signer_name,
                signature_hash=signature.signature_hash,
                signed_at=signature.signed_at,
                image_data_url=(
                    f"data:{signature.mime_type};base64," + base64.b64encode(signature.signature_data).decode("ascii")
                ),
                verified=signature.verify_integrity(),
            )
            for signature in self.matching_signatures(db, submission)
        ]

        title = ((bundle or {}).get("messages") or {}).get("title") or definition.name
        return SubmissionDocument(
            title=title,
            language=lang,
            submission_id=submission.id,
            submitted_at=submission.submission_date,
            form_version=submission.form_version,
            patient_name=patient.full_name if patient else "",
            patient_birth_date=format_date_for_language(patient.birth_date, lang.code) if patient else "",
            texts=DOCUMENT_TEXTS.get(lang.code, DOCUMENT_TEXTS["en"]),
            sections=self.build_sections(db, definition, values, lang.code, bundle),
            signatures=signatures,
        )

    def render_document(self, document: SubmissionDocument) -> str:
        template = self.env.get_template("forms/submission_document.html")
        return template.render(document=document)

    def render_html(self, db: Session, submission_id: int) -> str:
        """Render the submission document as HTML without rasterizing it."""
        submission = FormSubmissionService.get(db, submission_id)
        return self.render_document(self.build_document(db, submission))

    def generate_pdf(self, db: Session, submission_id: int, regenerate: bool = False) -> GeneratedDocument:
        """
        Generate, store and record the PDF of a submission.

        A completed submission whose stored file still exists is served from
        storage unless `regenerate` is set.

        Raises:
            NotFoundError: If the submission does not exist
            DocumentRenderingError: If rendering, rasterizing or storing fails;
                the submission is marked FAILED with the reason
        """
        submission = FormSubmissionService.get(db, submission_id)
        filename = document_filename(
            submission.form_definition, submission.patient, submission.submission_date, submission.id
        )

        if submission.is_completed and submission.pdf_file_path and not regenerate:
            stored = read_file(submission.pdf_file_path)
            if stored is not None:
                return GeneratedDocument(submission=submission, filename=filename, content=stored)
            logger.warning(f"Stored PDF of submission {submission_id} is missing, regenerating")

        try:
            document = self.build_document(db, submission)
            html = self.render_document(document)
            pdf_bytes = self.rasterizer.html_to_pdf(html, {
                "title": document.title,
                "author": document.patient_name,
                "subject": f"Submission {submission.id}",
                "creation_date": document.generated_at,
            })
            pdf_hash = hashlib.sha256(pdf_bytes).hexdigest()
            path = save_file(pdf_bytes, filename, self.storage_dir)
        except Exception as e:
            logger.exception(f"Error generating PDF for submission {submission_id}: {e}")
            FormSubmissionService.mark_failed(db, submission_id, f"PDF generation failed: {e}")
            raise DocumentRenderingError(f"PDF generation failed: {e}") from e

        submission.mark_completed(path, pdf_hash)
        db.commit()
        db.refresh(submission)
        logger.info(f"Generated PDF for submission {submission_id}: {path} (sha256 {pdf_hash})")
        return GeneratedDocument(submission=submission, filename=filename, content=pdf_bytes)
