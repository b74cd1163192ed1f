"""
Document extraction with Gemini.

A prescription, receipt or lab report is sent to the model as inline
bytes together with a prompt asking for a fixed JSON shape.  The reply
is parsed and normalized so that every key the views read is present.
Documents arrive either as base64 in the request body or as a URL the
backend downloads first.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional
from urllib.parse import urlparse

import requests
from django.conf import settings
from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'image/jpeg'
ALLOWED_URL_SCHEMES = ('http', 'https')
RECEIPT_TYPES = ('consultation', 'medicine', 'test', 'other')


class GeminiError(Exception):
    pass


# ---------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------
PRESCRIPTION_PROMPT = """You are a medical document analysis AI. Analyze this prescription document image and extract structured data.

Return ONLY a valid JSON object (no markdown, no code blocks, just pure JSON) with this exact structure:
{
  "doctor_name": "Dr. Name or empty string if not found",
  "doctor_specialty": "Specialty or empty string",
  "clinic_name": "Clinic Name or empty string",
  "diagnosis": "Diagnosis text or empty string",
  "medications": [
    {
      "medicine_name": "Medicine name",
      "dosage": "500mg",
      "frequency": "Twice daily",
      "duration": "7 days",
      "timing": "After meals or empty string",
      "instructions": "Additional instructions or empty string",
      "quantity": 10 or null
    }
  ],
  "lab_tests": ["Test 1", "Test 2"] or empty array,
  "advice": "General advice or empty string",
  "follow_up_date": "YYYY-MM-DD or empty string",
  "prescription_date": "YYYY-MM-DD or empty string",
  "confidence": 0.95
}

Extract all medication information you can find. If any field is not found, use empty string for text fields, empty array for arrays, null for numbers. Return ONLY the JSON object, nothing else."""

RECEIPT_GUIDANCE = {
    'consultation': (
        "Extract consultation receipt data. Look for: doctor name, doctor specialty (if mentioned), clinic name, "
        "clinic address (including area, city, state, pincode), consultation fee, date, payment method, invoice "
        "number. Extract full address and parse into area, city, state, and pincode fields separately if "
        "available. Return pharmacy_name and diagnostics_center_name as empty strings."
    ),
    'medicine': (
        "Extract medicine purchase receipt. Look for: pharmacy name, address, phone, medicine names with "
        "quantities and prices, total amount, tax, discount, payment method, date. Return doctor_name and "
        "diagnostics_center_name as empty strings. Include medicines array with name, quantity, price, total "
        "for each."
    ),
    'test': (
        "Extract diagnostic test receipt. Look for: diagnostics center name, address, phone, test names with "
        "prices, total amount, tax, payment method, date. Return doctor_name and pharmacy_name as empty strings. "
        "Include tests array with name and price for each."
    ),
    'other': (
        "Extract receipt data. Look for: amount, date, payment method, invoice number, items, total, tax. Return "
        "doctor_name, pharmacy_name, and diagnostics_center_name as empty strings."
    ),
}

RECEIPT_PROMPT = """You are a receipt analysis AI. Analyze this {receipt_type} receipt document and extract structured data.

{guidance}

Return ONLY a valid JSON object (no markdown, no code blocks, just pure JSON) with this structure:
{{
  "receipt_type": "{receipt_type}",
  "amount": 500.00 or null,
  "payment_method": "Cash/Card/UPI or empty string",
  "receipt_date": "YYYY-MM-DD or empty string",
  "invoice_number": "Invoice number or empty string",
  "pharmacy_name": "Pharmacy name or empty string",
  "pharmacy_address": "Address or empty string",
  "pharmacy_phone": "Phone or empty string",
  "diagnostics_center_name": "Center name or empty string",
  "diagnostics_center_address": "Address or empty string",
  "diagnostics_center_phone": "Phone or empty string",
  "doctor_name": "Doctor name or empty string",
  "doctor_specialty": "Doctor specialty or empty string",
  "clinic_name": "Clinic name or empty string",
  "clinic_address": "Full clinic address or empty string",
  "area": "Area/locality or empty string",
  "city": "City name or empty string",
  "state": "State name or empty string",
  "pincode": "PIN code (6 digits) or empty string",
  "consultation_fee": 300.00 or null,
  "medicines": [{{"name": "Medicine", "quantity": 10, "price": 50.00, "total": 500.00}}] or empty array,
  "tests": [{{"name": "Test", "price": 500.00}}] or empty array,
  "total_amount": 500.00 or null,
  "tax_amount": 50.00 or null,
  "discount": 0.00 or null,
  "confidence": 0.95
}}

If any field is not found, use empty string for text, empty array for arrays, null for numbers. Return ONLY the JSON object."""

TEST_RESULT_PROMPT = """You are a medical test result analysis AI. Analyze this test result/report document and extract structured data for vital parameters.

CRITICAL INSTRUCTIONS FOR VITAL PARAMETERS:
1. Extract ONLY numeric values - if value is text like "normal" or "abnormal", try to find the actual numeric value from the report. If no numeric value exists, set value to null and skip in parameters array.
2. Use STANDARDIZED parameter names from this list:
   - Blood Sugar: "Fasting Blood Sugar" (FBG/FBS), "Post-Prandial Blood Sugar" (PPBS), "Random Blood Sugar" (RBS), "HbA1c" (HbA1C/Glycated Hemoglobin)
   - Blood Pressure: "Systolic BP", "Diastolic BP" (extract as separate parameters)
   - Lipid Profile: "Total Cholesterol", "HDL Cholesterol", "LDL Cholesterol", "Triglycerides", "VLDL"
   - Complete Blood Count: "Hemoglobin" (Hb), "RBC Count", "WBC Count", "Platelet Count", "Hematocrit", "MCV", "MCH", "MCHC"
   - Kidney Function: "Serum Creatinine", "Blood Urea Nitrogen" (BUN), "Urea", "Uric Acid"
   - Liver Function: "SGOT/AST", "SGPT/ALT", "Total Bilirubin", "Direct Bilirubin", "Indirect Bilirubin", "Albumin", "Total Protein"
   - Thyroid: "TSH", "T3", "T4", "Free T3", "Free T4"
   - General: "Weight" (in kg), "BMI", "Height" (in cm)
   - Other common: "ESR", "CRP", "Vitamin D", "Vitamin B12", "Folic Acid"
3. Always extract numeric value - NEVER use text values like "normal", "abnormal", "high", "low"
4. Extract normal ranges (min/max) from the report if available
5. Mark is_abnormal as true if value is outside normal range

Return ONLY a valid JSON object (no markdown, no code blocks, just pure JSON) with this EXACT structure:
{
  "test_name": "Complete Blood Count or empty string",
  "test_category": "Blood Test/Urine Test/Metabolic Panel/Diabetes Test/Lipid Profile/Liver Function/Kidney Function/Thyroid Function or empty string",
  "test_date": "YYYY-MM-DD format (extract from report, required if available)",
  "test_time": "HH:MM format (extract if available, otherwise empty string)",
  "diagnostics_center_name": "Lab Name or empty string",
  "parameters": [
    {
      "parameter_name": "Hemoglobin (use standardized name from list above)",
      "value": 14.5,
      "unit": "g/dL",
      "normal_range_min": 12.0,
      "normal_range_max": 16.0,
      "is_abnormal": false
    }
  ],
  "interpretation": "Test interpretation text or empty string",
  "notes": "Additional notes or empty string",
  "confidence": 0.95
}

IMPORTANT:
- If a parameter value cannot be extracted as a number, DO NOT include it in the parameters array
- Use parameter_name exactly as listed in the standardized names above
- Always extract numeric values, units, and normal ranges
- Return empty parameters array [] if no numeric values found
- Return ONLY the JSON object, no other text"""


def receipt_prompt(receipt_type: str) -> str:
    if receipt_type not in RECEIPT_GUIDANCE:
        receipt_type = 'other'
    return RECEIPT_PROMPT.format(receipt_type=receipt_type, guidance=RECEIPT_GUIDANCE[receipt_type])


# ---------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------
def download_file(file_url: str) -> tuple[bytes, str]:
    """Fetch a document; the MIME type comes from ``Content-Type``."""
    parsed = urlparse(file_url)
    if parsed.scheme not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        raise GeminiError('Only http and https document URLs are supported')
    try:
        r = requests.get(file_url, timeout=settings.GEMINI_DOWNLOAD_TIMEOUT)
        r.raise_for_status()
    except requests.RequestException as e:
        raise GeminiError(f"Failed to fetch file: {e}") from e
    mime_type = (r.headers.get('Content-Type') or DEFAULT_MIME_TYPE).split(';')[0].strip()
    return r.content, mime_type


def load_document(*, file_url: Optional[str] = None, file_base64: Optional[str] = None,
                  file_type: Optional[str] = None) -> tuple[bytes, str]:
    """Return ``(bytes, mime_type)`` preferring inline base64 over the URL."""
    if file_base64:
        payload = file_base64
        if payload.startswith('data:') and ',' in payload:
            payload = payload.split(',', 1)[1]
        try:
            data = base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise GeminiError(f"Invalid base64 document: {e}") from e
        return data, file_type or DEFAULT_MIME_TYPE
    if file_url:
        data, mime_type = download_file(file_url)
        return data, mime_type or file_type or DEFAULT_MIME_TYPE
    raise GeminiError('Either file_url or file_base64 is required')


def generate(prompt: str, data: bytes, mime_type: str) -> str:
    """Send prompt plus inline document to Gemini and return the reply text."""
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        raise GeminiError('GEMINI_API_KEY not configured')

    client = genai.Client(api_key=api_key)
    logger.info("Calling Gemini %s with %s document (%d bytes)", settings.GEMINI_MODEL, mime_type, len(data))
    try:
        response = client.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=[
                prompt,
                types.Part.from_bytes(data=data, mime_type=mime_type or DEFAULT_MIME_TYPE),
            ],
            config=types.GenerateContentConfig(temperature=0),
        )
    except Exception as e:
        raise GeminiError(f"Gemini request failed: {e}") from e
    if not response.text:
        raise GeminiError('Empty response from Gemini')
    return response.text


def parse_json_text(text: str) -> dict:
    """Parse a model reply, tolerating Markdown code fences."""
    json_text = text.strip()
    if json_text.startswith('```'):
        json_text = json_text[len('```json'):] if json_text.startswith('```json') else json_text[3:]
        json_text = json_text.replace('```', '').strip()
    try:
        parsed = json.loads(json_text)
    except ValueError:
        logger.warning("Gemini response is not valid JSON: %s", text[:500])
        return {'raw_text': text, 'json_parse_error': True}
    if not isinstance(parsed, dict):
        return {'raw_text': text, 'json_parse_error': True}
    return parsed


def _extract(prompt: str, **document) -> dict:
    data, mime_type = load_document(**document)
    return parse_json_text(generate(prompt, data, mime_type))


# ---------------------------------------------------------------------
# Typed extractors
# ---------------------------------------------------------------------
def normalize_prescription(extracted: dict) -> dict:
    if extracted.get('json_parse_error'):
        return {'confidence': 0.3}
    return {
        'doctor_name': extracted.get('doctor_name') or '',
        'doctor_specialty': extracted.get('doctor_specialty') or '',
        'clinic_name': extracted.get('clinic_name') or '',
        'diagnosis': extracted.get('diagnosis') or '',
        'medications': extracted.get('medications') or [],
        'lab_tests': extracted.get('lab_tests') or [],
        'advice': extracted.get('advice') or '',
        'follow_up_date': extracted.get('follow_up_date') or '',
        'prescription_date': extracted.get('prescription_date') or '',
        'confidence': extracted.get('confidence') or 0.7,
    }


def normalize_receipt(extracted: dict, receipt_type: str) -> dict:
    if extracted.get('json_parse_error'):
        return {'receipt_type': receipt_type, 'confidence': 0.3}
    return {
        'receipt_type': receipt_type,
        'amount': extracted.get('amount') or extracted.get('total_amount') or None,
        'payment_method': extracted.get('payment_method') or '',
        'receipt_date': extracted.get('receipt_date') or '',
        'invoice_number': extracted.get('invoice_number') or '',
        'pharmacy_name': extracted.get('pharmacy_name') or '',
        'pharmacy_address': extracted.get('pharmacy_address') or '',
        'pharmacy_phone': extracted.get('pharmacy_phone') or '',
        'diagnostics_center_name': extracted.get('diagnostics_center_name') or '',
        'diagnostics_center_address': extracted.get('diagnostics_center_address') or '',
        'diagnostics_center_phone': extracted.get('diagnostics_center_phone') or '',
        'doctor_name': extracted.get('doctor_name') or '',
        'doctor_specialty': extracted.get('doctor_specialty') or '',
        'clinic_name': extracted.get('clinic_name') or '',
        'clinic_address': extracted.get('clinic_address') or '',
        'area': extracted.get('area') or '',
        'city': extracted.get('city') or '',
        'state': extracted.get('state') or '',
        'pincode': extracted.get('pincode') or '',
        'consultation_fee': extracted.get('consultation_fee') or None,
        'medicines': extracted.get('medicines') or [],
        'tests': extracted.get('tests') or [],
        'total_amount': extracted.get('total_amount') or extracted.get('amount') or None,
        'tax_amount': extracted.get('tax_amount') or None,
        'discount': extracted.get('discount') or None,
        'confidence': extracted.get('confidence') or 0.7,
    }


def normalize_test_result(extracted: dict) -> dict:
    if extracted.get('json_parse_error'):
        return {'confidence': 0.3}
    return {
        'test_name': extracted.get('test_name') or '',
        'test_category': extracted.get('test_category') or '',
        'test_date': extracted.get('test_date') or '',
        'test_time': extracted.get('test_time') or '',
        'diagnostics_center_name': extracted.get('diagnostics_center_name') or '',
        'parameters': extracted.get('parameters') or [],
        'interpretation': extracted.get('interpretation') or '',
        'notes': extracted.get('notes') or '',
        'confidence': extracted.get('confidence') or 0.7,
    }


def extract_prescription(**document) -> dict:
    return normalize_prescription(_extract(PRESCRIPTION_PROMPT, **document))


def extract_receipt(receipt_type: str, **document) -> dict:
    return normalize_receipt(_extract(receipt_prompt(receipt_type), **document), receipt_type)


def extract_test_result(**document) -> dict:
    return normalize_test_result(_extract(TEST_RESULT_PROMPT, **document))
