from reviewhub.api.errors import register_domain_exception_handlers
from reviewhub.api.routes import blog_router, company_router, principal_router, review_router

__all__ = [
    "blog_router",
    "company_router",
    "principal_router",
    "register_domain_exception_handlers",
    "review_router",
]
