from django.urls import path

from .views import HomeView, InfoPageView

app_name = "core"

urlpatterns = [
    path("", HomeView.as_view(), name="home"),
    path("contact/", InfoPageView.as_view(template_name="core/contact.html", title="Contact Us"), name="contact"),
    path("shipping/", InfoPageView.as_view(template_name="core/shipping.html", title="Shipping"), name="shipping"),
    path("returns/", InfoPageView.as_view(template_name="core/returns.html", title="Returns"), name="returns"),
    path("warranty/", InfoPageView.as_view(template_name="core/warranty.html", title="Warranty"), name="warranty"),
]
