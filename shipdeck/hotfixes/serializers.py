from rest_framework import serializers
from .models import Hotfix


class HotfixSerializer(serializers.ModelSerializer):
    release_id = serializers.IntegerField(read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Hotfix
        fields = [
            'id', 'release_id', 'title', 'description', 'payload',
            'created_by', 'created_by_username', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class HotfixWriteSerializer(serializers.ModelSerializer):
    """Writable hotfix fields; the release reference is fixed at creation"""

    class Meta:
        model = Hotfix
        fields = ['title', 'description', 'payload']

    def validate_payload(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Payload must be a JSON object.')
        return value
