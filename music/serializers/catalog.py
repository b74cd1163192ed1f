from django.utils import timezone
from rest_framework import serializers

from core.fields import CleanCharField
from music.services.artists import MIN_YEAR_BORN, MAX_BIO_CHARS
from music.services.ragas import POPULARITY, SEASONS, MARATHI_SEASONS


class RagaInputSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    description = CleanCharField()
    tags = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    idealHours = serializers.ListField(child=serializers.IntegerField(min_value=0, max_value=23), required=False)
    seasons = serializers.ListField(child=serializers.ChoiceField(choices=SEASONS), required=False)
    marathiSeasons = serializers.ListField(child=serializers.ChoiceField(choices=MARATHI_SEASONS), required=False)
    popularity = serializers.ChoiceField(choices=POPULARITY, required=False, allow_null=True)
    isActive = serializers.BooleanField(required=False, allow_null=True)


class ArtistInputSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    yearBorn = serializers.IntegerField(required=False, allow_null=True, min_value=MIN_YEAR_BORN)
    specialty = CleanCharField(max_length=100)
    gharana = CleanCharField(max_length=100)
    knownRagas = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    bio = CleanCharField(max_length=MAX_BIO_CHARS)
    imgUrl = CleanCharField(max_length=500)
    rating = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=5)
    isActive = serializers.BooleanField(required=False, allow_null=True)

    def validate_yearBorn(self, v):
        if v is not None and v > timezone.now().year:
            raise serializers.ValidationError(f"Ensure this value is less than or equal to {timezone.now().year}.")
        return v


class RatingSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False, allow_null=True)
