from rest_framework.routers import SimpleRouter
from .views import ClassViewSet

# SimpleRouter: DefaultRouter's API root would shadow the list route at ''.
router = SimpleRouter()
router.register(r'', ClassViewSet, basename='class')

urlpatterns = router.urls
