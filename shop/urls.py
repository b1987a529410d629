# shop/urls.py
from django.urls import path
from . import views

app_name = 'shop'

urlpatterns = [
    # catalogue
    path('products/', views.product_list, name='product_list'),
    path('products/filters/', views.apply_filter, name='apply_filter'),
    path('products/filters/clear/', views.clear_filters, name='clear_filters'),
    path('products/<str:product_id>/', views.product_detail, name='product_detail'),

    # cart
    path('cart/', views.cart_view, name='cart'),
    path('cart/add/', views.cart_add, name='cart_add'),
    path('cart/<str:product_id>/update/', views.cart_update, name='cart_update'),
    path('cart/<str:product_id>/remove/', views.cart_remove, name='cart_remove'),
    path('cart/clear/', views.cart_clear, name='cart_clear'),

    # wishlist
    path('wishlist/', views.wishlist_view, name='wishlist'),
    path('wishlist/add/', views.wishlist_add, name='wishlist_add'),
    path('wishlist/<str:product_id>/remove/', views.wishlist_remove, name='wishlist_remove'),
    path('wishlist/<str:product_id>/move-to-cart/', views.wishlist_move_to_cart, name='wishlist_move_to_cart'),
    path('wishlist/clear/', views.wishlist_clear, name='wishlist_clear'),

    # checkout
    path('checkout/', views.checkout, name='checkout'),
    path('payment/success/', views.payment_success, name='payment_success'),

    # orders & chat
    path('orders/', views.order_list, name='order_list'),
    path('orders/<str:order_id>/', views.order_detail, name='order_detail'),
    path('orders/<str:order_id>/cancel/', views.order_cancel, name='order_cancel'),
    path('orders/<str:order_id>/chat/', views.order_chat, name='order_chat'),

    # addresses
    path('addresses/', views.address_list, name='address_list'),
    path('addresses/new/', views.address_create, name='address_create'),
    path('addresses/<str:address_id>/edit/', views.address_update, name='address_update'),
    path('addresses/<str:address_id>/delete/', views.address_delete, name='address_delete'),

    # notifications
    path('notifications/', views.notification_list, name='notifications'),
    path('notifications/read-all/', views.notification_read_all, name='notification_read_all'),
    path('notifications/clear/', views.notification_clear, name='notification_clear'),
    path('notifications/<str:notification_id>/read/', views.notification_read, name='notification_read'),
    path('notifications/<str:notification_id>/delete/', views.notification_delete, name='notification_delete'),

    # reviews
    path('reviews/', views.my_reviews, name='my_reviews'),
    path('reviews/new/<str:product_id>/<str:order_id>/', views.review_create, name='review_create'),
    path('reviews/<str:review_id>/edit/', views.review_update, name='review_update'),
    path('reviews/<str:review_id>/delete/', views.review_delete, name='review_delete'),
    path('reviews/<str:review_id>/helpful/', views.review_helpful, name='review_helpful'),

    # admin console (role == "admin")
    path('manage/orders/', views.admin_orders, name='admin_orders'),
    path('manage/orders/<str:order_id>/status/', views.admin_order_status, name='admin_order_status'),
    path('manage/orders/<str:order_id>/payment-status/', views.admin_order_payment_status, name='admin_order_payment_status'),
    path('manage/products/', views.admin_product_list, name='admin_products'),
    path('manage/products/new/', views.admin_product_create, name='admin_product_create'),
    path('manage/products/<str:product_id>/edit/', views.admin_product_update, name='admin_product_update'),
    path('manage/products/<str:product_id>/delete/', views.admin_product_delete, name='admin_product_delete'),
    path('manage/analytics/', views.analytics_dashboard, name='analytics'),
]
