from django.contrib import admin
from django.urls import include, path

handler403 = "framehouse.error_views.handle_403"
handler404 = "framehouse.error_views.handle_404"
handler500 = "framehouse.error_views.handle_500"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("framehouse.api_urls")),
]
