from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AttendanceSessionViewSet,
    CommunicationLogViewSet,
    PreInformedAbsenceViewSet,
    GfmAuditReportView,
    GfmAuditExportView,
    DivisionSummaryView,
    CommunicationReportView,
)

router = DefaultRouter()
router.register(r'sessions', AttendanceSessionViewSet, basename='attendance-session')
router.register(r'communications', CommunicationLogViewSet, basename='communication-log')
router.register(r'pre-informed', PreInformedAbsenceViewSet, basename='pre-informed-absence')

# Mounted under /api/attendance/
urlpatterns = [
    path('', include(router.urls)),
    path('reports/gfm-audit/', GfmAuditReportView.as_view()),
    path('reports/gfm-audit/export/', GfmAuditExportView.as_view()),
    path('reports/division-summary/', DivisionSummaryView.as_view()),
    path('reports/communications/', CommunicationReportView.as_view()),
]
