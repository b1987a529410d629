from django.views.generic import TemplateView

from stores import ProductsStore


class HomeView(TemplateView):
    """Landing page: trending products and the category tiles."""
    template_name = "core/home.html"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        store = ProductsStore(self.request)
        ctx["trending_products"] = store.trending_products
        ctx["categories"] = store.categories
        return ctx


class InfoPageView(TemplateView):
    """Static info pages (contact, shipping, returns, warranty)."""
    title = ""

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["title"] = self.title
        return ctx
