from dukasmart.schemas.auth import CurrentUser, LoginRequest, MessageResponse, RegisterRequest
from dukasmart.schemas.category import (
    MainCategoryCreate, MainCategoryResponse, SubCategoryCreate, SubCategoryResponse,
)
from dukasmart.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from dukasmart.schemas.inventory import (
    PurchaseCreate, PurchaseResponse, SaleCreate, SaleResponse,
    StockMovementCreate, StockMovementResponse,
)
from dukasmart.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeResponse
from dukasmart.schemas.notification import NotificationResponse, NotificationListResponse

__all__ = [
    "CurrentUser", "LoginRequest", "MessageResponse", "RegisterRequest",
    "MainCategoryCreate", "MainCategoryResponse", "SubCategoryCreate", "SubCategoryResponse",
    "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "PurchaseCreate", "PurchaseResponse", "SaleCreate", "SaleResponse",
    "StockMovementCreate", "StockMovementResponse",
    "EmployeeCreate", "EmployeeUpdate", "EmployeeResponse",
    "NotificationResponse", "NotificationListResponse",
]
