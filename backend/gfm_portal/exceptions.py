from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


def custom_exception_handler(exc, context):
    # Service-layer validation uses Django's ValidationError; surface it as a 400.
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return Response({'detail': detail, 'status_code': status.HTTP_400_BAD_REQUEST}, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict):
            response.data = {'errors': response.data}
        response.data['status_code'] = response.status_code
        response.data.setdefault('detail', str(exc))

    return response
