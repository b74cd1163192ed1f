from decimal import Decimal

from django.core.management.base import BaseCommand

from records.models import VitalParameterDefinition

# (parameter_name, display_name, unit, category, subcategory, min, max, related)
DEFINITIONS = [
    ("Fasting Blood Sugar", "FBS", "mg/dL", "diabetes", "blood_sugar", "70", "100", ["HbA1c"]),
    ("Post-Prandial Blood Sugar", "PPBS", "mg/dL", "diabetes", "blood_sugar", "70", "140", ["Fasting Blood Sugar"]),
    ("Random Blood Sugar", "RBS", "mg/dL", "diabetes", "blood_sugar", "70", "140", []),
    ("HbA1c", "HbA1c", "%", "diabetes", "blood_sugar", "4.0", "5.6", ["Fasting Blood Sugar"]),
    ("Systolic BP", "Systolic", "mmHg", "cardiac", "blood_pressure", "90", "120", ["Diastolic BP"]),
    ("Diastolic BP", "Diastolic", "mmHg", "cardiac", "blood_pressure", "60", "80", ["Systolic BP"]),
    ("Total Cholesterol", "Total Chol.", "mg/dL", "cardiac", "lipid_profile", "0", "200",
     ["HDL Cholesterol", "LDL Cholesterol", "Triglycerides"]),
    ("HDL Cholesterol", "HDL", "mg/dL", "cardiac", "lipid_profile", "40", "60", ["Total Cholesterol"]),
    ("LDL Cholesterol", "LDL", "mg/dL", "cardiac", "lipid_profile", "0", "100", ["Total Cholesterol"]),
    ("Triglycerides", "TG", "mg/dL", "cardiac", "lipid_profile", "0", "150", ["VLDL Cholesterol"]),
    ("VLDL Cholesterol", "VLDL", "mg/dL", "cardiac", "lipid_profile", "5", "40", ["Triglycerides"]),
    ("Hemoglobin", "Hb", "g/dL", "general", "blood_count", "12", "16", ["RBC Count", "Hematocrit"]),
    ("RBC Count", "RBC", "million/uL", "general", "blood_count", "4.2", "5.9", ["Hemoglobin"]),
    ("WBC Count", "WBC", "cells/uL", "general", "blood_count", "4000", "11000", []),
    ("Platelet Count", "Platelets", "cells/uL", "general", "blood_count", "150000", "450000", []),
    ("Hematocrit", "Hct", "%", "general", "blood_count", "36", "50", ["Hemoglobin"]),
    ("MCV", "MCV", "fL", "general", "blood_count", "80", "100", ["MCH", "MCHC"]),
    ("MCH", "MCH", "pg", "general", "blood_count", "27", "33", ["MCV"]),
    ("MCHC", "MCHC", "g/dL", "general", "blood_count", "32", "36", ["MCV"]),
    ("Serum Creatinine", "Creatinine", "mg/dL", "general", "kidney_function", "0.6", "1.2",
     ["Blood Urea Nitrogen"]),
    ("Blood Urea Nitrogen", "BUN", "mg/dL", "general", "kidney_function", "7", "20", ["Serum Creatinine"]),
    ("Blood Urea", "Urea", "mg/dL", "general", "kidney_function", "15", "40", []),
    ("Uric Acid", "Uric Acid", "mg/dL", "general", "kidney_function", "3.5", "7.2", []),
    ("SGOT/AST", "AST", "U/L", "general", "liver_function", "0", "40", ["SGPT/ALT"]),
    ("SGPT/ALT", "ALT", "U/L", "general", "liver_function", "0", "40", ["SGOT/AST"]),
    ("Total Bilirubin", "T. Bilirubin", "mg/dL", "general", "liver_function", "0.1", "1.2",
     ["Direct Bilirubin", "Indirect Bilirubin"]),
    ("Direct Bilirubin", "D. Bilirubin", "mg/dL", "general", "liver_function", "0", "0.3", ["Total Bilirubin"]),
    ("Indirect Bilirubin", "I. Bilirubin", "mg/dL", "general", "liver_function", "0.2", "0.8", ["Total Bilirubin"]),
    ("Albumin", "Albumin", "g/dL", "general", "liver_function", "3.5", "5.0", ["Total Protein"]),
    ("Total Protein", "T. Protein", "g/dL", "general", "liver_function", "6.0", "8.3", ["Albumin"]),
    ("TSH", "TSH", "mIU/L", "general", "thyroid_function", "0.4", "4.0", ["T3", "T4"]),
    ("T3", "T3", "ng/dL", "general", "thyroid_function", "80", "200", ["TSH"]),
    ("T4", "T4", "ug/dL", "general", "thyroid_function", "5", "12", ["TSH"]),
    ("Free T3", "FT3", "pg/mL", "general", "thyroid_function", "2.3", "4.2", ["TSH"]),
    ("Free T4", "FT4", "ng/dL", "general", "thyroid_function", "0.8", "1.8", ["TSH"]),
    ("Weight", "Weight", "kg", "general", "body_measurements", None, None, ["BMI"]),
    ("BMI", "BMI", "kg/m2", "general", "body_measurements", "18.5", "24.9", ["Weight", "Height"]),
    ("Height", "Height", "cm", "general", "body_measurements", None, None, ["BMI"]),
    ("ESR", "ESR", "mm/hr", "general", "other", "0", "20", []),
    ("CRP", "CRP", "mg/L", "general", "other", "0", "10", []),
    ("Vitamin D", "Vit D", "ng/mL", "general", "other", "30", "100", []),
    ("Vitamin B12", "Vit B12", "pg/mL", "general", "other", "200", "900", []),
    ("Folic Acid", "Folate", "ng/mL", "general", "other", "2.7", "17", []),
]


class Command(BaseCommand):
    help = "Create or refresh the standard vital parameter definitions (idempotent)."

    def handle(self, *args, **opts):
        created_count = 0
        for order, (name, display, unit, category, subcategory, low, high, related) in enumerate(DEFINITIONS):
            _, created = VitalParameterDefinition.objects.update_or_create(
                parameter_name=name,
                defaults={
                    "display_name": display,
                    "unit": unit,
                    "category": category,
                    "subcategory": subcategory,
                    "default_normal_range_min": Decimal(low) if low is not None else None,
                    "default_normal_range_max": Decimal(high) if high is not None else None,
                    "parameter_type": "percentage" if unit == "%" else "numeric",
                    "related_parameters": related,
                    "sort_order": order * 10,
                    "is_active": True,
                },
            )
            created_count += int(created)
        self.stdout.write(self.style.SUCCESS(
            f"{len(DEFINITIONS)} definitions ensured ({created_count} new)."
        ))
