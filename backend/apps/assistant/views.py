# apps/assistant/views.py
"""
Business assistant API views
"""
import logging
import math

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.domain.models import (
    BusinessSnapshot,
    ChannelFailureError,
    DomainException,
    NotInitializedError,
    ValidationError as DomainValidationError,
)
from apps.infrastructure.container import get_assistant, get_service_info

from .serializers import (
    ChatRequestSerializer,
    ChatResponseSerializer,
    ServiceInfoSerializer,
    SnapshotRequestSerializer,
    StatusSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema(
    tags=["Assistant"],
    summary="Assistant status",
    responses={200: StatusSerializer},
)
@api_view(["GET"])
@permission_classes([AllowAny])
def assistant_status(request):
    """Whether the assistant is initialized, and with which snapshot/session"""
    return Response(get_assistant().status())


@extend_schema(
    tags=["Assistant"],
    summary="Service configuration",
    description="Which model, retriever and business backend the assistant is wired to, with model pricing.",
    responses={200: ServiceInfoSerializer},
)
@api_view(["GET"])
@permission_classes([AllowAny])
def service_info(request):
    return Response(get_service_info())


@extend_schema(
    tags=["Assistant"],
    summary="Initialize the assistant",
    description=(
        "Install a business snapshot and open the model session. "
        "Without a snapshot in the body one is loaded from the business backend."
    ),
    request=SnapshotRequestSerializer,
    responses={200: StatusSerializer, 400: OpenApiTypes.OBJECT, 502: OpenApiTypes.OBJECT},
)
@api_view(["POST"])
@permission_classes([AllowAny])
def initialize(request):
    return _install_snapshot(request, refresh=False)


@extend_schema(
    tags=["Assistant"],
    summary="Refresh the business snapshot",
    description="Replace the snapshot and rebuild the model session. Later turns see the new data.",
    request=SnapshotRequestSerializer,
    responses={200: StatusSerializer, 400: OpenApiTypes.OBJECT, 502: OpenApiTypes.OBJECT},
)
@api_view(["POST"])
@permission_classes([AllowAny])
def refresh(request):
    return _install_snapshot(request, refresh=True)


def _install_snapshot(request, refresh: bool):
    serializer = SnapshotRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    assistant = get_assistant()
    payload = serializer.validated_data.get("snapshot")

    try:
        if payload is not None:
            snapshot = BusinessSnapshot.from_dict(payload)
        else:
            snapshot = assistant.load_snapshot()

        if refresh:
            assistant.refresh(snapshot)
        else:
            assistant.initialize(snapshot)

    except (DomainValidationError, ValueError, TypeError, KeyError) as e:
        logger.warning(f"Rejected snapshot: {e}")
        return Response(
            {"success": False, "error": f"Invalid snapshot: {e}"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    except DomainException as e:
        logger.error(f"Assistant {'refresh' if refresh else 'initialization'} failed: {e}", exc_info=True)
        return Response(
            {"success": False, "error": str(e)},
            status=status.HTTP_502_BAD_GATEWAY,
        )

    return Response(assistant.status())


@extend_schema(
    tags=["Assistant"],
    summary="Send a message to the assistant",
    request=ChatRequestSerializer,
    responses={
        200: ChatResponseSerializer,
        400: OpenApiTypes.OBJECT,
        409: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
        502: OpenApiTypes.OBJECT,
    },
)
@api_view(["POST"])
@permission_classes([AllowAny])
def chat(request):
    """
    Run one assistant turn

    Returns:
        200: {response, tool_calls, messages, status, notice}
        429: Throttled, with Retry-After
        409: Assistant not initialized
        502: Model channel failure
    """
    serializer = ChatRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    assistant = get_assistant()

    try:
        result = assistant.chat(
            serializer.validated_data["message"],
            history=serializer.history_messages(),
        )

    except NotInitializedError as e:
        return Response(
            {"success": False, "error": str(e)},
            status=status.HTTP_409_CONFLICT,
        )

    except DomainValidationError as e:
        return Response(
            {"success": False, "error": str(e)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    except ChannelFailureError as e:
        logger.error(f"Assistant turn failed: {e}")
        return Response(
            {"success": False, "error": e.user_message},
            status=status.HTTP_502_BAD_GATEWAY,
        )

    if result.is_rate_limited:
        retry_after = max(1, math.ceil(result.retry_after or 0))
        response = Response(
            {"success": False, "status": result.status.value, "error": result.notice},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )
        response["Retry-After"] = str(retry_after)
        return response

    return Response(result.to_dict())
