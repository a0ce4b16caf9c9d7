from django.urls import include, path
from rest_framework.routers import DefaultRouter

from groupbuying.views import GroupOrderViewSet, HousekeepingViewSet
from users.views import AuthViewSet

router = DefaultRouter()
router.register(r'group-orders', GroupOrderViewSet, basename='group-order')
router.register(r'housekeeping', HousekeepingViewSet, basename='housekeeping')
router.register(r'auth', AuthViewSet, basename='auth')

urlpatterns = [
    path('api/v1/', include(router.urls)),
]
