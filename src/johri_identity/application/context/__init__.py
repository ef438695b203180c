from johri_identity.application.context.request_context import RequestContext

__all__ = ["RequestContext"]
