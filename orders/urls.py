from django.urls import path
from . import views

app_name = "orders"

urlpatterns = [
    path("health", views.health, name="health"),
    path("webhook/orders", views.order_webhook, name="order_webhook"),
    path("orders", views.order_list, name="order_list"),
    path("orders/lookup", views.order_lookup, name="order_lookup"),
    path("orders/measurements", views.update_measurements, name="update_measurements"),
    path("orders/pickup-point", views.update_pickup_point, name="update_pickup_point"),
    path("orders/shipment", views.request_shipment, name="request_shipment"),
    path("orders/fulfill", views.fulfill_order, name="fulfill_order"),
    path("pickup-points/search", views.find_pickup_points, name="find_pickup_points"),
    path("products/lookup", views.product_lookup, name="product_lookup"),
]
