from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema
from apps.accounts.permissions import IsAdminRoleOrReadOnly
from .serializers import (
    NumberSequenceSerializer,
    SetSequenceInputSerializer,
    NextValueSerializer,
)
from .services import NumberSequenceService


@extend_schema(responses=NumberSequenceSerializer(many=True))
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sequence_list(request):
    """List all counters."""
    sequences = NumberSequenceService.list_sequences()
    return Response(NumberSequenceSerializer(sequences, many=True).data)


@extend_schema(
    request=SetSequenceInputSerializer,
    responses=NumberSequenceSerializer,
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRoleOrReadOnly])
def sequence_detail(request, entity):
    """
    Preview or override a single counter.

    GET /api/sequences/{entity}/   - next value, without consuming it
    PUT /api/sequences/{entity}/   - Body: {"current": 42} (admin only)
    """
    if request.method == 'PUT':
        serializer = SetSequenceInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sequence = NumberSequenceService.set_current(
            entity, serializer.validated_data['current']
        )
        return Response(NumberSequenceSerializer(sequence).data)

    return Response({
        'entity': entity,
        'current': NumberSequenceService.peek(entity),
    })


@extend_schema(request=None, responses=NextValueSerializer)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sequence_next(request, entity):
    """
    Consume the next value of a counter.

    POST /api/sequences/{entity}/next/
    """
    value = NumberSequenceService.next_value(entity)
    return Response({
        'entity': entity,
        'value': value,
        'number': NumberSequenceService.format_number(entity, value),
    })
