"""
Vital parameter rules: name normalization, categorisation, normal-range
fallback and abnormality flags.

Lab reports name the same parameter in many ways ("Hb", "HEMOGLOBIN",
"Haemoglobin (Hb)") and the charts only work when readings share one
canonical name.  Names of parameters extracted from uploaded test reports
are normalized here; manual entries keep the name the user chose and
only take their unit, range and category from a matching definition.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from records.models import VitalParameter, VitalParameterDefinition
from records.services.values import normalize_time, to_decimal

logger = logging.getLogger(__name__)

NAME_MAPPINGS = {
    'hb': 'Hemoglobin',
    'hemoglobin': 'Hemoglobin',
    'hba1c': 'HbA1c',
    'glycated hemoglobin': 'HbA1c',
    'fbs': 'Fasting Blood Sugar',
    'fbg': 'Fasting Blood Sugar',
    'fasting glucose': 'Fasting Blood Sugar',
    'ppbs': 'Post-Prandial Blood Sugar',
    'pp': 'Post-Prandial Blood Sugar',
    'rbs': 'Random Blood Sugar',
    'random glucose': 'Random Blood Sugar',
    'total cholesterol': 'Total Cholesterol',
    'hdl': 'HDL Cholesterol',
    'ldl': 'LDL Cholesterol',
    'triglycerides': 'Triglycerides',
    'systolic': 'Systolic BP',
    'diastolic': 'Diastolic BP',
    'systolic bp': 'Systolic BP',
    'diastolic bp': 'Diastolic BP',
    'creatinine': 'Serum Creatinine',
    'serum creatinine': 'Serum Creatinine',
    'bun': 'Blood Urea Nitrogen',
    'blood urea nitrogen': 'Blood Urea Nitrogen',
    'sgpt': 'SGPT/ALT',
    'sgot': 'SGOT/AST',
    'alt': 'SGPT/ALT',
    'ast': 'SGOT/AST',
    'bilirubin': 'Total Bilirubin',
    'tsh': 'TSH',
    't3': 'T3',
    't4': 'T4',
    'free t3': 'Free T3',
    'free t4': 'Free T4',
}

# (category, subcategory, keywords); first match wins
KEYWORD_CATEGORIES = [
    ('diabetes', 'blood_sugar', ('blood sugar', 'glucose', 'fbs', 'ppbs', 'rbs', 'hba1c', 'glycated')),
    ('cardiac', None, ('cholesterol', 'hdl', 'ldl', 'triglyceride', 'vldl', 'systolic', 'diastolic', 'bp')),
    ('general', 'kidney_function', ('creatinine', 'urea', 'bun', 'uric acid')),
    ('general', 'liver_function', ('sgpt', 'sgot', 'alt', 'ast', 'bilirubin', 'albumin', 'protein')),
    ('general', 'thyroid_function', ('tsh', 't3', 't4')),
    ('general', 'blood_count', ('hemoglobin', 'rbc', 'wbc', 'platelet', 'hematocrit', 'mcv', 'mch', 'mchc')),
]


def normalize_name(name: str) -> str:
    name = (name or '').strip()
    return NAME_MAPPINGS.get(name.lower(), name)


def find_definition(name: str, *, active_only: bool = False) -> Optional[VitalParameterDefinition]:
    qs = VitalParameterDefinition.objects.filter(parameter_name__iexact=name)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.first()


def categorize(name: str, test_category: Optional[str] = None) -> tuple[str, Optional[str]]:
    """Keyword categorisation used when no definition exists."""
    lower = name.lower()
    for category, subcategory, keywords in KEYWORD_CATEGORIES:
        if any(k in lower for k in keywords):
            if category == 'cardiac':
                subcategory = 'blood_pressure' if 'bp' in lower else 'lipid_profile'
            return category, subcategory

    tc = (test_category or '').lower()
    if 'diabetes' in tc or 'sugar' in tc:
        return 'diabetes', None
    if 'cardiac' in tc or 'lipid' in tc or 'cholesterol' in tc:
        return 'cardiac', None
    return 'general', None


def is_out_of_range(value: Optional[Decimal], low: Optional[Decimal], high: Optional[Decimal],
                    flagged: bool = False) -> bool:
    if value is not None and low is not None and high is not None:
        return value < low or value > high
    return bool(flagged)


def save_test_parameters(*, parameters: list, patient_id, recorded_by, test_result_id, appointment_id: str,
                         test_date: date, test_time: Optional[str], test_category: Optional[str]) -> list[dict]:
    """Persist the numeric parameters of a test report as vital readings.

    Non-numeric values are skipped.  Returns one summary dict per saved
    reading.
    """
    saved = []
    recorded_time = normalize_time(test_time)
    for param in parameters or []:
        if not isinstance(param, dict):
            continue
        value = to_decimal(param.get('value'))
        raw_name = str(param.get('parameter_name') or '').strip()
        if value is None or not raw_name:
            continue

        name = normalize_name(raw_name)
        definition = find_definition(name)
        if definition is not None:
            category = definition.category or 'general'
            subcategory = definition.subcategory or None
        else:
            category, subcategory = categorize(name, test_category)

        low = to_decimal(param.get('normal_range_min'))
        high = to_decimal(param.get('normal_range_max'))
        if definition is not None:
            low = low if low is not None else definition.default_normal_range_min
            high = high if high is not None else definition.default_normal_range_max

        reading = VitalParameter.objects.create(
            patient_id=patient_id,
            parameter_name=name,
            value=value,
            unit=param.get('unit') or '',
            recorded_date=test_date,
            recorded_time=recorded_time,
            normal_range_min=low,
            normal_range_max=high,
            category=category,
            subcategory=subcategory,
            is_abnormal=is_out_of_range(value, low, high, param.get('is_abnormal') or False),
            source='test_report',
            test_result_id=test_result_id,
            appointment_id=appointment_id,
            recorded_by=recorded_by,
        )
        logger.info("Saved %s=%s %s (%s/%s)", reading.parameter_name, value, reading.unit, category, subcategory)
        saved.append({
            'parameter_name': reading.parameter_name,
            'normalized_name': name,
            'value': float(value),
            'unit': param.get('unit') or '',
            'category': category,
            'subcategory': subcategory,
        })
    return saved
