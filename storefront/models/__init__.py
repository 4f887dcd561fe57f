from storefront.models.order import Order

# add ALL models here
