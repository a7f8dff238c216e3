# Checkout engine services
