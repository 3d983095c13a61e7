from rest_framework import serializers


class StrictSerializer(serializers.Serializer):
    """Request body parser that rejects fields it does not declare."""

    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            unknown = sorted(set(data.keys()) - set(self.fields.keys()))
            if unknown:
                raise serializers.ValidationError({field: ["Unknown field."] for field in unknown})
        return super().to_internal_value(data)


class VersionedActionSerializer(StrictSerializer):
    version = serializers.IntegerField(required=False, min_value=0)
