import logging
import os

from fastapi import APIRouter, FastAPI, Depends, HTTPException, Request, Form
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .db import engine, init_db, SessionLocal
from . import auth, cart, checkout, crud, models, schemas
from . import config
from .exceptions import DuplicateEmailError, LoginRequired
from .payments import PaystackVerifier, verifier_from_settings
from .utils import format_price, parse_int

config.configure_logging()
logger = logging.getLogger(__name__)

init_db(engine)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))
templates.env.filters["money"] = format_price


# Dependency to get DB session per request

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_payment_verifier() -> PaystackVerifier:
    return verifier_from_settings()


def current_user(request: Request, db: Session = Depends(get_db)) -> models.User | None:
    user = None
    user_id = request.session.get(checkout.SESSION_USER_KEY)
    if user_id is not None:
        user = crud.get_user(db, user_id)
    request.state.user = user
    return user


def require_admin(request: Request, user: models.User | None = Depends(current_user)) -> models.User:
    if user is None:
        raise LoginRequired(request.url.path)
    if user.role != auth.ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user


app = FastAPI(title="NeoTech Storefront", dependencies=[Depends(current_user)])
app.add_middleware(
    SessionMiddleware,
    secret_key=config.get_settings().session_secret,
    max_age=auth.SESSION_MAX_AGE,
    same_site="lax",
)
app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")

admin = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def page_user(request: Request) -> models.User | None:
    # Unmatched routes never run the app-level dependencies
    if hasattr(request.state, "user"):
        return request.state.user
    if "session" not in request.scope or request.session.get(checkout.SESSION_USER_KEY) is None:
        return None
    provider = app.dependency_overrides.get(get_db, get_db)
    sessions = provider()
    try:
        return current_user(request, next(sessions))
    finally:
        sessions.close()


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    lines = cart.load(request.session) if "session" in request.scope else ()
    ctx = {
        "current_user": page_user(request),
        "cart_count": sum(line.qty for line in lines),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


# -------------------- Errors --------------------

@app.exception_handler(StarletteHTTPException)
async def http_error_page(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return render(request, "404.html", status_code=404)
    if exc.status_code == 403:
        user = getattr(request.state, "user", None)
        logger.warning("Forbidden %s for user %s", request.url.path, user.id if user else None)
    return render(
        request,
        "error.html",
        {"status_code": exc.status_code, "message": exc.detail if exc.status_code == 403 else "Something went wrong"},
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def bad_path_param(request: Request, exc: RequestValidationError):
    # Form fields are all optional strings, so only ids in the path get here
    return render(request, "404.html", status_code=404)


@app.exception_handler(LoginRequired)
async def login_required(request: Request, exc: LoginRequired):
    return redirect("/login")


@app.get("/health")
async def health():
    return {"status": "ok"}


# -------------------- Catalog --------------------

@app.get("/", response_class=HTMLResponse)
async def index(request: Request, db: Session = Depends(get_db)):
    return render(request, "index.html", {
        "products": crud.list_active_products(db),
        "categories": crud.list_categories(db),
    })


@app.get("/product/{product_id}", response_class=HTMLResponse)
async def product_detail(request: Request, product_id: int, db: Session = Depends(get_db)):
    product = crud.get_active_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="product not found")
    return render(request, "product.html", {
        "product": product,
        "recs": crud.list_recommendations(db, product_id),
    })


@app.get("/category/{category_id}", response_class=HTMLResponse)
async def category_detail(request: Request, category_id: int, db: Session = Depends(get_db)):
    category = crud.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="category not found")
    return render(request, "category.html", {
        "category": category,
        "products": crud.list_category_products(db, category_id),
    })


# -------------------- Auth --------------------

@app.get("/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return render(request, "login.html", {"error": None})


@app.post("/login", response_class=HTMLResponse)
async def login(request: Request, email: str = Form(default=""), password: str = Form(default=""), db: Session = Depends(get_db)):
    if not email or not password:
        return render(request, "login.html", {"error": "Missing fields", "email": email})
    user = crud.authenticate(db, email.strip(), password)
    if not user:
        return render(request, "login.html", {"error": "Invalid credentials", "email": email})
    request.session[checkout.SESSION_USER_KEY] = user.id
    return redirect("/")


@app.get("/register", response_class=HTMLResponse)
async def register_form(request: Request):
    return render(request, "register.html", {"error": None})


@app.post("/register", response_class=HTMLResponse)
async def register(request: Request, email: str = Form(default=""), password: str = Form(default=""), db: Session = Depends(get_db)):
    if not email or not password:
        return render(request, "register.html", {"error": "Missing fields", "email": email})
    try:
        # role is never taken from the form
        crud.create_user(db, email.strip(), password)
    except DuplicateEmailError:
        return render(request, "register.html", {"error": "Email already in use", "email": email})
    return redirect("/login")


@app.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return redirect("/")


# -------------------- Cart --------------------

@app.post("/cart/add")
async def cart_add(request: Request, product_id: str = Form(default=""), qty: str = Form(default="1"), db: Session = Depends(get_db)):
    pid = parse_int(product_id)
    product = crud.get_active_product(db, pid) if pid is not None else None
    if not product:
        return redirect("/")
    cart.store(request.session, cart.add(cart.load(request.session), product, qty))
    return redirect("/cart")


@app.get("/cart", response_class=HTMLResponse)
async def cart_view(request: Request):
    lines = cart.load(request.session)
    return render(request, "cart.html", {"cart": lines, "total": cart.total(lines)})


@app.post("/cart/update")
async def cart_update(request: Request, id: str = Form(default=""), qty: str = Form(default="1")):
    lines = cart.load(request.session)
    updated = cart.update(lines, id, qty)
    if updated != lines:
        cart.store(request.session, updated)
    return redirect("/cart")


@app.get("/cart/clear")
async def cart_clear(request: Request):
    cart.store(request.session, cart.clear(cart.load(request.session)))
    return redirect("/cart")


# -------------------- Checkout --------------------

@app.get("/checkout", response_class=HTMLResponse)
async def checkout_view(request: Request):
    view = checkout.prepare_checkout(request.session, config.get_settings().paystack_public_key)
    if view is None:
        return redirect("/cart")
    return render(request, "checkout.html", {
        "cart": view.lines,
        "total": view.total,
        "paystack_key": view.public_key,
    })


@app.get("/checkout/verify", response_class=HTMLResponse)
async def checkout_verify(
    request: Request,
    reference: str = "",
    db: Session = Depends(get_db),
    verifier: PaystackVerifier = Depends(get_payment_verifier),
):
    if not reference:
        return redirect("/checkout")
    outcome = await checkout.complete_payment(db, request.session, reference, verifier)
    if outcome.empty:
        return redirect("/cart")
    return render(request, "payment.html", {"ok": outcome.ok, "ref": outcome.reference if outcome.ok else None})


# -------------------- Admin --------------------

def render_admin(request: Request, db: Session, error: str | None = None, status_code: int = 200):
    return render(request, "admin.html", {
        "products": crud.list_products(db),
        "categories": crud.list_categories(db),
        "orders": crud.list_orders(db),
        "error": error,
    }, status_code=status_code)


def form_error(e: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())


@admin.get("", response_class=HTMLResponse)
async def admin_dashboard(request: Request, db: Session = Depends(get_db)):
    return render_admin(request, db)


@admin.post("/products/create")
async def admin_create_product(
    request: Request,
    name: str = Form(default=""),
    price: str = Form(default=""),
    category_id: str = Form(default=""),
    image: str = Form(default=""),
    description: str = Form(default=""),
    db: Session = Depends(get_db),
):
    try:
        data = schemas.ProductIn(name=name, price=price, category_id=category_id, image=image, description=description)
    except ValidationError as e:
        return render_admin(request, db, error=form_error(e), status_code=400)
    crud.create_product(db, data)
    return redirect("/admin")


@admin.post("/products/update/{product_id}")
async def admin_update_product(
    request: Request,
    product_id: int,
    name: str = Form(default=""),
    price: str = Form(default=""),
    category_id: str = Form(default=""),
    image: str = Form(default=""),
    description: str = Form(default=""),
    active: str | None = Form(default=None),
    db: Session = Depends(get_db),
):
    try:
        data = schemas.ProductIn(
            name=name, price=price, category_id=category_id, image=image,
            description=description, active=bool(active),
        )
    except ValidationError as e:
        return render_admin(request, db, error=form_error(e), status_code=400)
    if not crud.update_product(db, product_id, data):
        raise HTTPException(status_code=404, detail="product not found")
    return redirect("/admin")


@admin.get("/products/delete/{product_id}")
async def admin_delete_product(product_id: int, db: Session = Depends(get_db)):
    if not crud.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail="product not found")
    return redirect("/admin")


@admin.post("/categories/create")
async def admin_create_category(request: Request, name: str = Form(default=""), db: Session = Depends(get_db)):
    try:
        data = schemas.CategoryIn(name=name)
    except ValidationError as e:
        return render_admin(request, db, error=form_error(e), status_code=400)
    crud.create_category(db, data)
    return redirect("/admin")


@admin.post("/categories/update/{category_id}")
async def admin_update_category(request: Request, category_id: int, name: str = Form(default=""), db: Session = Depends(get_db)):
    try:
        data = schemas.CategoryIn(name=name)
    except ValidationError as e:
        return render_admin(request, db, error=form_error(e), status_code=400)
    if not crud.update_category(db, category_id, data):
        raise HTTPException(status_code=404, detail="category not found")
    return redirect("/admin")


@admin.get("/categories/delete/{category_id}")
async def admin_delete_category(category_id: int, db: Session = Depends(get_db)):
    if not crud.delete_category(db, category_id):
        raise HTTPException(status_code=404, detail="category not found")
    return redirect("/admin")


@admin.get("/orders/{order_id}", response_class=HTMLResponse)
async def admin_order_detail(request: Request, order_id: int, db: Session = Depends(get_db)):
    order = crud.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    return render(request, "admin_order.html", {"order": order})


@admin.post("/orders/status/{order_id}")
async def admin_order_status(order_id: int, status: str = Form(default=""), db: Session = Depends(get_db)):
    if not crud.update_order_status(db, order_id, status):
        raise HTTPException(status_code=404, detail="order not found")
    return redirect("/admin")


app.include_router(admin)


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.get_settings().port)


if __name__ == "__main__":
    run()
