"""Admin registrations for the healthcare records."""
from django.contrib import admin

from .models import (
    Patient, UnverifiedDoctor, Pharmacy, DiagnosticsCenter, PastVisit, PastPrescription, Receipt,
    PastTestResult, VitalParameter, VitalParameterDefinition,
)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'user_id', 'is_active')
    search_fields = ('name', 'phone')


@admin.register(PastVisit)
class PastVisitAdmin(admin.ModelAdmin):
    list_display = ('appointment_id', 'patient_name', 'doctor_name', 'visit_date', 'is_active')
    search_fields = ('appointment_id', 'patient_name', 'doctor_name')
    list_filter = ('is_active',)


@admin.register(VitalParameterDefinition)
class VitalParameterDefinitionAdmin(admin.ModelAdmin):
    list_display = ('parameter_name', 'unit', 'category', 'subcategory', 'sort_order', 'is_active')
    list_filter = ('category',)


for model in (UnverifiedDoctor, Pharmacy, DiagnosticsCenter, PastPrescription, Receipt, PastTestResult,
              VitalParameter):
    admin.site.register(model)
