from rest_framework import serializers
from .models import NumberSequence


class NumberSequenceSerializer(serializers.ModelSerializer):
    """Counter state; ``current`` is the next value to be issued."""

    class Meta:
        model = NumberSequence
        fields = ['entity', 'current', 'updated_at']
        read_only_fields = fields


class SetSequenceInputSerializer(serializers.Serializer):
    """
    Validate input for an administrative counter override.

    Fields:
        current (int): Next value to hand out, at least 1.
    """

    current = serializers.IntegerField(min_value=1)


class NextValueSerializer(serializers.Serializer):
    """Response for a consumed counter value."""

    entity = serializers.CharField()
    value = serializers.IntegerField()
    number = serializers.CharField()
