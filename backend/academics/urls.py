from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import StudentViewSet, BatchDefinitionViewSet, AllocationViewSet, MyBatchStudentsView

router = DefaultRouter()
router.register(r'students', StudentViewSet, basename='student')
router.register(r'batches', BatchDefinitionViewSet, basename='batch')
router.register(r'allocations', AllocationViewSet, basename='allocation')

# Mounted under /api/academics/
urlpatterns = [
    path('', include(router.urls)),
    path('my-batch/students/', MyBatchStudentsView.as_view()),
]
