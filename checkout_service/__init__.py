# Storefront Checkout Service
