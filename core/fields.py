import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """Optional text field with any HTML stripped."""

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_blank', True)
        kwargs.setdefault('allow_null', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value.strip(), strip=True)
