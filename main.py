import os
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.database import Database
from starlette.exceptions import HTTPException as StarletteHTTPException

import demo
from auth import BCRYPT_ROUNDS, AuthService, UserStore
from carts import CartService
from catalog import CatalogStore
from database import connect
from errors import ShopError
from orders import OrderService
from schemas import AddToCartBody, LoginBody, PlaceOrderBody, Product, RegisterBody

logger = logging.getLogger(__name__)

STATIC_DIR = os.getenv("STATIC_DIR", "public")
LOGIN_DIR = os.getenv("LOGIN_DIR", "login")

# Responses on these paths carry a "success" flag.
AUTH_ROUTES = {"/api/register", "/api/login", "/api/registered-users"}


@dataclass
class Services:
    db: Database
    catalog: CatalogStore
    carts: CartService
    orders: OrderService
    auth: AuthService
    items: demo.ItemStore
    voters: demo.VoterRegistry


def build_services(db: Database, bcrypt_rounds: int = BCRYPT_ROUNDS) -> Services:
    catalog = CatalogStore()
    carts = CartService(catalog)
    return Services(
        db=db,
        catalog=catalog,
        carts=carts,
        orders=OrderService(catalog, carts),
        auth=AuthService(UserStore(db), rounds=bcrypt_rounds),
        items=demo.ItemStore(),
        voters=demo.VoterRegistry(),
    )


app = FastAPI(title="Shop Demo API", version="1.0.0")
app.state.services = build_services(connect())

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

if os.path.isdir(STATIC_DIR):
    app.mount("/public", StaticFiles(directory=STATIC_DIR), name="public")
if os.path.isdir(LOGIN_DIR):
    app.mount("/login", StaticFiles(directory=LOGIN_DIR, html=True), name="login")

app.include_router(demo.router)


# ----------------------- Utils -----------------------
def services(request: Request) -> Services:
    return request.app.state.services


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    body = {"message": message}
    if request.url.path in AUTH_ROUTES:
        body = {"success": False, **body}
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return error_response(request, exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        err = errors[0]
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {err.get('msg')}" if field else err.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_response(request, 400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))


def with_image_url(product: Product, request: Request) -> dict:
    data = product.model_dump(mode="json", by_alias=True)
    data["image"] = str(request.base_url).rstrip("/") + product.image_path
    return data


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Welcome to the Basic API!"}


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/test")
def test_database(request: Request):
    db = services(request).db
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": db.name,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        db.command("ping")
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
        response["collections"] = db.list_collection_names()[:10]
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Catalog -----------------------
@app.get("/api/products")
def list_products(
    request: Request,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
):
    products = services(request).catalog.list(category, min_price, max_price, search)
    return [with_image_url(p, request) for p in products]


@app.get("/api/products/{product_id}")
def get_product(product_id: int, request: Request):
    return with_image_url(services(request).catalog.get(product_id), request)


@app.get("/api/categories")
def list_categories(request: Request):
    return services(request).catalog.categories()


# ----------------------- Cart -----------------------
@app.post("/api/cart", status_code=201)
def add_to_cart(body: AddToCartBody, request: Request):
    return services(request).carts.add_item(body.user_id, body.product_id, body.quantity)


@app.get("/api/cart/{user_id}")
def get_cart(user_id: int, request: Request):
    return services(request).carts.get_cart(user_id)


@app.delete("/api/cart/{user_id}/{product_id}")
def remove_from_cart(user_id: int, product_id: int, request: Request):
    cart = services(request).carts.remove_item(user_id, product_id)
    return {"message": "Item removed from cart", "cart": cart}


# ----------------------- Orders -----------------------
@app.post("/api/orders", status_code=201)
def place_order(body: PlaceOrderBody, request: Request):
    return services(request).orders.place_order(body.user_id, body.items, body.shipping_address)


@app.get("/api/orders/{user_id}")
def list_orders(user_id: int, request: Request):
    return services(request).orders.orders_for_user(user_id)


# ----------------------- Auth -----------------------
@app.post("/api/register", status_code=201)
def register(body: RegisterBody, request: Request):
    user = services(request).auth.register(body.username, body.email, body.password)
    return {"success": True, "message": "User registered successfully", "user": user}


@app.post("/api/login")
def login(body: LoginBody, request: Request):
    user = services(request).auth.login(body.username, body.password)
    return {"success": True, "message": "Login successful", "user": user}


@app.get("/api/registered-users")
def registered_users(request: Request):
    return {"success": True, "users": services(request).auth.list_users()}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", 8000))
    logger.info("Starting shop API on port %s", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
