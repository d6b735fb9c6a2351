from fieldcrm.api.routes.customers import router as customers_router
from fieldcrm.api.routes.leads import router as leads_router
from fieldcrm.api.routes.users import router as users_router

__all__ = [
    "customers_router",
    "leads_router",
    "users_router",
]
