"""URL configuration for the bookings project.

Routes the Django admin and the application-level API of each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/payments/', include('apps.payments.urls')),
    path('api/v1/referrals/', include('apps.referrals.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
]
