from django.contrib.auth import get_user_model
from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from .permissions import IsAdminRole
from .serializers import UserSerializer

User = get_user_model()


class MeView(APIView):
    permission_classes = (permissions.IsAuthenticated,)

    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)


class FacultyListView(generics.ListAPIView):
    """GFM teachers available for batch assignment (admin only)."""
    serializer_class = UserSerializer
    permission_classes = (permissions.IsAuthenticated, IsAdminRole)

    def get_queryset(self):
        qs = User.objects.filter(role=User.Role.GFM, is_active=True).order_by('full_name', 'username')
        department = self.request.query_params.get('department')
        if department:
            qs = qs.filter(department=department)
        return qs
