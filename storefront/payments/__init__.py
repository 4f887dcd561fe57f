from storefront.payments.chapa import ChapaGateway, chapa_gateway

__all__ = ["ChapaGateway", "chapa_gateway"]
