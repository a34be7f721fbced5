"""
URL configuration for Inkwell.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

from wagtail.admin import urls as wagtailadmin_urls


def health_check(request):
    """Simple health check endpoint for the load balancer."""
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('health/', health_check, name='health_check'),
    path('django-admin/', admin.site.urls),
    path('admin/', include(wagtailadmin_urls)),

    # Manuscript JSON API (projects, episodes, scenes)
    path('api/', include('manuscript.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
