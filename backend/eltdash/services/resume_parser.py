"""
Resume text extraction and pattern analysis.

Supported formats:
- PDF (.pdf) using PyPDF2
- Word (.docx) using python-docx
- Plain text (.txt, .md, .rtf)

The analyzer is pure regex work; no external service is involved.
"""
import io
import os
import re
from datetime import date

from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from flask import current_app
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

TEXT_EXTENSIONS = {".txt", ".md", ".rtf"}


def get_file_extension(filename):
    if "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


def extract_from_pdf(content):
    reader = PdfReader(io.BytesIO(content))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_from_docx(content):
    document = DocxDocument(io.BytesIO(content))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_from_txt(content):
    return content.decode("utf-8", errors="ignore")


def extract_text_from_file(path):
    """Return the plain text of a stored resume, or "" when nothing can be read."""
    if not path or not os.path.exists(path):
        return ""

    with open(path, "rb") as fh:
        content = fh.read()
    if not content:
        return ""

    ext = get_file_extension(path)
    try:
        if ext == ".pdf":
            return extract_from_pdf(content)
        if ext == ".docx":
            return extract_from_docx(content)
        if ext in TEXT_EXTENSIONS:
            return extract_from_txt(content)
    except (PdfReadError, PackageNotFoundError, ValueError, KeyError) as exc:
        current_app.logger.warning("Could not read resume %s: %s", path, exc)
        return ""

    current_app.logger.warning("Unsupported resume extension %r, reading as text", ext)
    return extract_from_txt(content)


CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
INLINE_SPACE = re.compile(r"[ \t\r\f\v]+")

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RES = [
    re.compile(r"(?:\+\d{1,3}[ -]?)?\(?\d{3}\)?[ -]?\d{3}[ -]?\d{4}\b"),
    re.compile(r"\+\d{1,3}[ -]?\d{8,12}\b"),
    re.compile(r"\b\d{3,5}[ -]?\d{6,7}\b"),
]

NAME_WORDS = r"([A-Z][a-z]+(?:[ \t]+(?:[A-Z]\.?[ \t]+)?[A-Z][a-z]+){1,3})"
LABELLED_NAME_RES = [
    re.compile(r"^(?i:name|full name|candidate|applicant)[ \t]*[:\-][ \t]*(.+)$", re.M),
    re.compile(r"^(?i:cv|resume|curriculum vitae)(?:[ \t]+(?i:of|for))?[ \t]*[:\-]?[ \t]*" + NAME_WORDS + r"[ \t]*$", re.M),
]
HEADING_NAME_RE = re.compile(r"^" + NAME_WORDS + r"$", re.M)

DEGREES = [
    ("PhD", re.compile(r"\b(?:Ph\.?[ ]?D\b\.?|Doctorate|Doctoral)", re.I)),
    ("Master", re.compile(r"\b(?:Master(?:'s|s)?\b|M\.[ ]?A\b|M\.[ ]?S\b|M\.?[ ]?Ed\b|M\.?B\.?A\b)", re.I)),
    ("Bachelor", re.compile(r"\b(?:Bachelor(?:'s|s)?\b|B\.[ ]?A\b|B\.[ ]?S\b|B\.?[ ]?Ed\b)", re.I)),
    ("Associate", re.compile(r"\b(?:Associate(?:'s|s)?[ \t]+(?:degree|of|in)\b|A\.[ ]?A\b|A\.[ ]?S\b)", re.I)),
]
EDUCATION_FIELDS = [
    "Applied Linguistics", "English Literature", "English Language", "Language Education",
    "Language Teaching", "Linguistics", "Literature", "Education", "Teaching",
    "English", "TESOL", "TEFL", "ESL",
]
FIELD_AFTER_DEGREE_RE = re.compile(r"\b(?:in|of)[ \t]+([A-Z][A-Za-z]+(?:[ \t]+[A-Z][A-Za-z]+){0,3})")

CERT_NAMES_RE = re.compile(r"\b(CertTESOL|DipTESOL|TEFL|TESOL|CELTA|DELTA|TESL|TKT)\b")
CERT_SECTION_RE = re.compile(r"^(?:certifications?|credentials)[ \t]*:[ \t]*(.+)$", re.I | re.M)

EXPERIENCE_RES = [
    re.compile(r"(\d{1,2})\+?\s+years?\s+(?:of\s+)?(?:[A-Za-z]+\s+)?experience", re.I),
    re.compile(r"experience\s*[:=]\s*(\d{1,2})\+?\s+years?", re.I),
]
EXPERIENCE_SECTION_RE = re.compile(
    r"(?:work|professional|teaching)\s+experience\s*:?(.*?)(?=\b(?:education|skills|languages|references?)\b|\Z)",
    re.I | re.S,
)
YEAR_RANGE_RE = re.compile(
    "((?:19|20)\\d{2})\\s*[-\\u2013\\u2014]\\s*((?:19|20)\\d{2}|present|current|now)", re.I
)

NATIVE_SPEAKER_RES = [
    re.compile(r"native\s+(?:English|language)\s+speaker", re.I),
    re.compile(r"English\s+(?:is|as)\s+(?:a|my)\s+(?:native|first|primary|mother)\s+(?:language|tongue)", re.I),
    re.compile(r"(?:native|first|primary|mother)\s+(?:language|tongue)\s*(?:is|:|-)\s*English", re.I),
    re.compile(r"English\s*\(\s*native\s*\)", re.I),
]
MILITARY_RES = [
    re.compile(r"\b(?:military|army|navy|air force|marines?|armed forces)\s+(?:experience|service|background|career)", re.I),
    re.compile(r"\bserved\s+in\s+(?:the\s+)?(?:military|army|navy|air force|marines?|armed forces)", re.I),
    re.compile(r"\b(?:veteran|soldier|airman|sailor|servicemember)\b", re.I),
    re.compile(r"\b(?:military|army|navy|air force)\s+(?:college|academy|school|training)", re.I),
]
NATIONALITY_RES = [
    re.compile(r"(?i:nationality|citizenship|country of origin)[ \t]*:[ \t]*([A-Z][a-z]+(?:[ \t][A-Z][a-z]+)?)"),
    re.compile(r"(?i:citizen of)[ \t]+(?:the[ \t]+)?([A-Z][a-z]+(?:[ \t][A-Z][a-z]+)?)"),
]


def clean_text(text):
    """Strip control characters and collapse spacing, keeping line breaks."""
    text = CONTROL_CHARS.sub(" ", text or "")
    lines = (INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def name_from_filename(filename):
    stem = os.path.splitext(os.path.basename(filename))[0]
    stem = re.sub(r"^[0-9a-f]{32}_", "", stem)
    stem = re.sub(r"^\d+[-_]", "", stem)
    words = [w for w in re.split(r"[-_ ]+", stem) if w.isalpha()]
    if not words:
        return None
    return " ".join(w.capitalize() for w in words)


def _find_name(text, filename):
    for pattern in LABELLED_NAME_RES:
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip()
            if 3 < len(candidate) < 50:
                return candidate

    if filename:
        from_file = name_from_filename(filename)
        if from_file and len(from_file) >= 3:
            return from_file

    match = HEADING_NAME_RE.search(text[:500])
    return match.group(1) if match else None


def _find_degree(text):
    for degree, pattern in DEGREES:
        match = pattern.search(text)
        if not match:
            continue
        line_end = text.find("\n", match.end())
        rest_of_line = text[match.end():] if line_end == -1 else text[match.end():line_end]

        for field in EDUCATION_FIELDS:
            if re.search(r"\b%s\b" % re.escape(field), rest_of_line, re.I):
                return degree, field

        field_match = FIELD_AFTER_DEGREE_RE.search(rest_of_line)
        return degree, field_match.group(1) if field_match else None
    return None, None


def _find_degree_field(text):
    for field in EDUCATION_FIELDS:
        escaped = re.escape(field)
        if re.search(r"(?:in|of|with)\s+%s\b|\b%s\s+(?:degree|major)" % (escaped, escaped), text, re.I):
            return field
    return None


def _find_certifications(text):
    names = []
    for name in CERT_NAMES_RE.findall(text):
        if name not in names:
            names.append(name)
    if names:
        return ", ".join(names)

    match = CERT_SECTION_RE.search(text)
    return match.group(1).strip() if match else None


def _find_years_experience(text, today):
    for pattern in EXPERIENCE_RES:
        match = pattern.search(text)
        if match:
            years = int(match.group(1))
            if 0 < years < 60:
                return years

    section = EXPERIENCE_SECTION_RE.search(text)
    if not section:
        return None

    earliest, latest = None, None
    for start, end in YEAR_RANGE_RE.findall(section.group(1)):
        start_year = int(start)
        end_year = today.year if not end.isdigit() else int(end)
        earliest = start_year if earliest is None else min(earliest, start_year)
        latest = end_year if latest is None else max(latest, end_year)

    if earliest is not None and latest > earliest:
        return latest - earliest
    return None


def analyze_resume(text, filename=None, today=None):
    """
    Extract candidate fields from resume text.

    Returns a camelCase dict ready to prefill a Candidate form. Fields that
    cannot be found are left out, except the boolean flags and status.
    """
    today = today or date.today()
    cleaned = clean_text(text)
    flat = " ".join(cleaned.split("\n"))

    result = {
        "status": "new",
        "nativeEnglishSpeaker": any(p.search(flat) for p in NATIVE_SPEAKER_RES),
        "militaryExperience": any(p.search(flat) for p in MILITARY_RES),
        "hasCertifications": False,
    }

    email = EMAIL_RE.search(flat)
    if email:
        result["email"] = email.group(0)

    for pattern in PHONE_RES:
        phone = pattern.search(flat)
        if phone:
            result["phone"] = phone.group(0).strip()
            break

    name = _find_name(cleaned, filename)
    if name:
        result["name"] = name

    degree, degree_field = _find_degree(cleaned)
    if degree:
        result["degree"] = degree
    degree_field = degree_field or _find_degree_field(flat)
    if degree_field:
        result["degreeField"] = degree_field

    certifications = _find_certifications(cleaned)
    if certifications:
        result["hasCertifications"] = True
        result["certifications"] = certifications

    years = _find_years_experience(cleaned, today)
    if years is not None:
        result["yearsExperience"] = years

    for pattern in NATIONALITY_RES:
        match = pattern.search(cleaned)
        if match:
            result["nationality"] = match.group(1).strip()
            break

    return result
