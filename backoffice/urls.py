"""
URL configuration for the backoffice project.
"""
from django.contrib import admin
from django.http import HttpResponse
from django.urls import path, include


def home(request):
    return HttpResponse("Back office kasir - Backend Aktif")


urlpatterns = [
    path('', home),
    path('admin/reports/', include('cashier.report_urls')),
    path('admin/', admin.site.urls),
    path('api/', include('cashier.api.urls')),
]
