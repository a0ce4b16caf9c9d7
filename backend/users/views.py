from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from groupbuying.services import get_services

from .serializers import LoginSerializer, RegisterSerializer, UserSerializer


class AuthViewSet(viewsets.ViewSet):
    """
    register / login (role checked) / logout / users/<id>.
    """

    @action(detail=False, methods=["post"])
    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = get_services().accounts.register(**serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def login(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = get_services().accounts.login(**serializer.validated_data)
        return Response(UserSerializer(user).data)

    @action(detail=False, methods=["post"])
    def logout(self, request):
        get_services().accounts.logout()
        return Response(status=status.HTTP_204_NO_CONTENT)

    def retrieve(self, request, pk=None):
        return Response(UserSerializer(get_services().accounts.get_user(pk)).data)
