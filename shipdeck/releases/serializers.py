from rest_framework import serializers
from .models import Release


class ReleaseSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    deployed_by_username = serializers.CharField(source='deployed_by.username', read_only=True, default=None)

    class Meta:
        model = Release
        fields = [
            'id', 'workspace_id', 'name', 'version', 'description', 'target_date',
            'qa_status', 'deployed', 'deployed_at', 'deployed_by', 'deployed_by_username',
            'created_by', 'created_by_username', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ReleaseCreateSerializer(serializers.ModelSerializer):
    # Blank and whitespace-only values are rejected by the model-derived CharFields
    class Meta:
        model = Release
        fields = ['workspace_id', 'name', 'version', 'description', 'target_date']


class ReleaseUpdateSerializer(serializers.ModelSerializer):
    """Mutable release fields; workspace, QA and deploy state are not writable here"""

    class Meta:
        model = Release
        fields = ['name', 'version', 'description', 'target_date']


class QAStatusSerializer(serializers.Serializer):
    qa_status = serializers.ChoiceField(choices=Release.QA_STATUS_CHOICES)
