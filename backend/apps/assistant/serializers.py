# apps/assistant/serializers.py
"""
Assistant API serializers
"""
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from apps.domain.models import ChatMessage, MessageRole


class HistoryMessageSerializer(serializers.Serializer):
    """A prior conversation message sent by the client"""

    role = serializers.ChoiceField(choices=["user", "assistant", "model", "tool"])
    text = serializers.CharField(allow_blank=True)
    isThinking = serializers.BooleanField(required=False, default=False)


class ChatRequestSerializer(serializers.Serializer):
    """Serializer for chat requests"""

    message = serializers.CharField(max_length=4000)
    history = HistoryMessageSerializer(many=True, required=False, default=list)

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError("Message cannot be empty")
        return value.strip()

    def history_messages(self):
        """Validated history as domain ChatMessages"""
        return [ChatMessage.from_dict(item) for item in self.validated_data.get("history", [])]


@extend_schema_field(OpenApiTypes.OBJECT)
class SnapshotField(serializers.JSONField):
    pass


class SnapshotRequestSerializer(serializers.Serializer):
    """
    Body of initialize/refresh

    Without a snapshot the server loads one from the business backend.
    """

    snapshot = SnapshotField(required=False)

    def validate_snapshot(self, value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("snapshot must be an object")
        return value


class ToolCallSerializer(serializers.Serializer):
    name = serializers.CharField()
    args = serializers.DictField()
    result = serializers.DictField()


class MessageSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[r.value for r in MessageRole])
    text = serializers.CharField(allow_blank=True)
    isThinking = serializers.BooleanField()


class ChatResponseSerializer(serializers.Serializer):
    response = serializers.CharField(allow_blank=True)
    tool_calls = ToolCallSerializer(many=True, allow_null=True)
    messages = MessageSerializer(many=True)
    status = serializers.CharField()
    notice = serializers.CharField(allow_null=True)


class StatusSerializer(serializers.Serializer):
    initialized = serializers.BooleanField()
    snapshot_version = serializers.IntegerField(allow_null=True)
    captured_at = serializers.DateTimeField(allow_null=True)
    session_id = serializers.CharField(allow_null=True)
    requests_remaining = serializers.IntegerField()
    tools = serializers.ListField(child=serializers.CharField())


class ServiceInfoSerializer(serializers.Serializer):
    """Configured adapters, model pricing and request budget"""

    environment = serializers.CharField()
    llm = serializers.DictField()
    retriever = serializers.DictField()
    business_api = serializers.DictField()
    prompt_version = serializers.CharField()
    assistant_rate = serializers.CharField(allow_null=True)
