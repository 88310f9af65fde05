from django.urls import path

from src.api.urls import api

urlpatterns = [
    path("api/", api.urls),
]
