from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path
from django.views.generic import RedirectView

import gfm_portal.admin_customization  # noqa: F401
from gfm_portal import admin_views

urlpatterns = [
    path('', RedirectView.as_view(url='/admin/', permanent=False), name='gfm-dashboard'),
    path('favicon.ico', lambda request: HttpResponse(status=204), name='favicon'),
    path('admin/dashboard-data/', admin_views.dashboard_counts, name='admin-dashboard-data'),
    path('admin/', admin.site.urls),
    path('api/accounts/', include('accounts.urls')),
    path('api/academics/', include('academics.urls')),
    path('api/attendance/', include('attendance.urls')),
]
