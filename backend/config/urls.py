from django.contrib import admin
from django.urls import path, include
from rest_framework.authtoken.views import obtain_auth_token
from rest_framework.routers import DefaultRouter

from billing.views import InvoiceViewSet
from bookings.views import BookingViewSet
from inventory.views import ProductRecipeViewSet, ProductViewSet
from notifications.views import NotificationViewSet
from rooms.views import RoomViewSet
from users.views import UserMeView

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"invoices", InvoiceViewSet, basename="invoice")
router.register(r"products", ProductViewSet, basename="product")
router.register(r"recipes", ProductRecipeViewSet, basename="recipe")
router.register(r"rooms", RoomViewSet, basename="room")
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("admin/", admin.site.urls),

    path("api/auth/token/", obtain_auth_token, name="api-token"),
    path("api/users/me/", UserMeView.as_view(), name="user-me"),

    path("api/", include(router.urls)),
]
