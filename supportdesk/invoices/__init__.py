from .service import InvoiceService

__all__ = ["InvoiceService"]
